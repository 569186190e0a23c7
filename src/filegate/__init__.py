"""filegate: lists and looks up files known to an upstream files API."""

__version__ = "0.1.0"
