"""Patient Records - clinic patient roster and record editor client."""

__version__ = "1.0.0"
