"""
Stream Module for the Stream Delivery Engine.

Range delivery of recordings, live source resolution, the fair discovery
feed and preview extraction, following clean architecture principles.
"""

from .domain.models import Stream, StreamRange, FeedEntry
from .application.streaming_service import RangeStreamer
from .application.live_service import LiveSourceResolver
from .application.feed_service import FairFeedInterleaver
from .application.preview_service import PreviewCache
from .integration import StreamModule, create_stream_module

__all__ = [
    "Stream",
    "StreamRange",
    "FeedEntry",
    "RangeStreamer",
    "LiveSourceResolver",
    "FairFeedInterleaver",
    "PreviewCache",
    "StreamModule",
    "create_stream_module",
]
