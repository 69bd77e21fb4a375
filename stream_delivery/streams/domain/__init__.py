"""
Stream Domain Layer.

Contains pure business logic and domain models for stream delivery.
No external dependencies - only Python standard library and domain concepts.
"""

from .models import Stream, Tag, UserRef, StreamRange, FeedEntry, NO_STREAM_KEY
from .interfaces import StreamStore, FrameExtractor
from .exceptions import (
    StreamDeliveryError,
    BadRequest,
    RangeNotSatisfiable,
    NotFound,
    ExternalToolFailure,
    StoreFailure,
    KeyIssueFailure,
)

__all__ = [
    "Stream",
    "Tag",
    "UserRef",
    "StreamRange",
    "FeedEntry",
    "NO_STREAM_KEY",
    "StreamStore",
    "FrameExtractor",
    "StreamDeliveryError",
    "BadRequest",
    "RangeNotSatisfiable",
    "NotFound",
    "ExternalToolFailure",
    "StoreFailure",
    "KeyIssueFailure",
]
