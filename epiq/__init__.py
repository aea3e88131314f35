"""EpiQ: skincare ingredient scoring and dupe discovery."""

__version__ = "0.3.0"
