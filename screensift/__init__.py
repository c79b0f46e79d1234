"""ScreenSift - AI-powered screenshot classification and organization."""

from screensift.version import __version__

__all__ = ["__version__"]
