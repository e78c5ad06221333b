"""Order submission pipeline for the storefront."""

__version__ = "0.1.0"
