"""depwall - package dependency constraints for Python projects."""

__version__ = "0.3.0"
