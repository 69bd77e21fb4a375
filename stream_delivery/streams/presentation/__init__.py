"""
Stream Presentation Layer.

Contains HTTP controllers, request/response models, and API route definitions.
"""

from .controllers import StreamingController, PreviewController, FeedController, StreamController
from .schemas import StreamResponse, StreamKeyResponse, LatestStreamKeyResponse
from .routes import create_stream_routes, create_key_routes, create_tag_routes

__all__ = [
    "StreamingController",
    "PreviewController",
    "FeedController",
    "StreamController",
    "StreamResponse",
    "StreamKeyResponse",
    "LatestStreamKeyResponse",
    "create_stream_routes",
    "create_key_routes",
    "create_tag_routes",
]
