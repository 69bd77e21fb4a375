"""
Stream Application Layer.

Contains the use cases of the engine: range delivery, live sources,
the fair discovery feed and preview extraction.
"""

from .streaming_service import RangeStreamer, RangeStreamPlan
from .live_service import LiveSourceResolver
from .feed_service import FairFeedInterleaver
from .preview_service import PreviewCache

__all__ = [
    "RangeStreamer",
    "RangeStreamPlan",
    "LiveSourceResolver",
    "FairFeedInterleaver",
    "PreviewCache",
]
