"""RoofQuote - address to roof measurements and cost estimate."""

__version__ = "1.0.0"
