"""maedic: health endpoint for an access-control platform's HI service."""

__version__ = "0.4.0"
