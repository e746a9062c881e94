"""Terminal previews of files for the lf file manager: thumbnails, metadata and wrapped text."""

__version__ = "0.1.0"
__all__ = ["__version__"]