"""Face clustering service for shared photo groups."""

__version__ = "1.0.0"
