"""relmap — picker selections mirrored into a generic relation store."""

__version__ = "0.1.0"
