"""Video asset lifecycle and access control."""

__version__ = "1.0.0"
