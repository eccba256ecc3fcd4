"""Suburb analysis modules.

This package aggregates property records into suburb summaries and infers
each suburb's fortnightly bin rotation.
"""

from .aggregator import SuburbAggregator
from .patterns import PatternAnalyzer

__all__ = ["PatternAnalyzer", "SuburbAggregator"]
