"""Image effects built on the ImageMagick command line tools."""

__version__ = "0.1.0"
