"""Version information for ScreenSift."""

__version__ = "0.1.0"
