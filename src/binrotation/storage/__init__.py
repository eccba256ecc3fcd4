"""Storage modules for publishing processed data.

This package writes analysed suburb data as JSON files for the front end
and reads them back for validation.
"""

from .publisher import DataPublisher, load_processed

__all__ = ["DataPublisher", "load_processed"]
