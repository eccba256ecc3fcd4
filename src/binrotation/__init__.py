"""binrotation: suburb bin rotation patterns from council open data."""

__version__ = "1.0.0"
