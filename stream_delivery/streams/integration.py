"""
Stream Module Integration.

Composition root of the stream delivery engine: builds the store, the
transcoder and the application services from one Config and wires them
into controllers and routers.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter

from ..core.config import Config
from ..core.timezone_utils import TimezoneManager

# Domain interfaces
from .domain.interfaces import FrameExtractor, StreamStore

# Infrastructure implementations
from .infrastructure.repositories import JsonStreamStore
from .infrastructure.transcoders import FFmpegFrameExtractor, OpenCVFrameExtractor

# Application services
from .application.streaming_service import RangeStreamer
from .application.live_service import LiveSourceResolver
from .application.feed_service import FairFeedInterleaver
from .application.preview_service import PreviewCache

# Presentation layer
from .presentation.controllers import FeedController, PreviewController, StreamController, StreamingController
from .presentation.routes import create_key_routes, create_stream_routes, create_tag_routes


class StreamModule:
    """
    Main stream module that provides dependency injection and service composition.

    Pass stream_store or frame_extractor to replace the defaults built from
    the configuration (tests use this to inject fakes).
    """

    def __init__(
        self,
        config: Config,
        stream_store: Optional[StreamStore] = None,
        frame_extractor: Optional[FrameExtractor] = None,
    ):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.timezone = TimezoneManager(config.system.timezone)
        self.stream_store = stream_store or self._create_stream_store()
        self.frame_extractor = frame_extractor or self._create_frame_extractor()

        self._initialize_services()

        self.logger.info("Stream module initialized successfully")

    def _initialize_services(self):
        """Initialize all services with proper dependency injection"""

        # Application layer
        self.live_resolver = LiveSourceResolver(self.stream_store, self.config.live)
        self.range_streamer = RangeStreamer(self.stream_store, self.config.streaming, self.config.media_root)
        self.feed = FairFeedInterleaver(self.stream_store, self.live_resolver)
        self.preview_cache = PreviewCache(
            self.stream_store,
            self.frame_extractor,
            self.config.preview,
            self.config.media_root,
        )

        # Presentation layer
        self.streaming_controller = StreamingController(self.range_streamer)
        self.preview_controller = PreviewController(self.preview_cache)
        self.feed_controller = FeedController(self.feed, self.live_resolver)
        self.stream_controller = StreamController(self.stream_store, self.live_resolver)

    def _create_stream_store(self) -> StreamStore:
        return JsonStreamStore(self.config.storage.store_file, timezone=self.timezone)

    def _create_frame_extractor(self) -> FrameExtractor:
        """Create the configured extractor, falling back to OpenCV without ffmpeg"""
        preview = self.config.preview
        if preview.extractor == "opencv":
            return OpenCVFrameExtractor()

        if not FFmpegFrameExtractor.is_available(preview.ffmpeg_binary):
            self.logger.warning(f"{preview.ffmpeg_binary} not found - using OpenCV frame extractor")
            return OpenCVFrameExtractor()

        return FFmpegFrameExtractor(
            ffmpeg_binary=preview.ffmpeg_binary,
            quality=preview.quality,
            timeout_seconds=preview.timeout_seconds,
        )

    def get_api_routes(self) -> List[APIRouter]:
        """Get FastAPI routers for stream functionality"""
        return [
            create_stream_routes(
                streaming_controller=self.streaming_controller,
                preview_controller=self.preview_controller,
                feed_controller=self.feed_controller,
                stream_controller=self.stream_controller,
            ),
            create_key_routes(self.stream_controller),
            create_tag_routes(self.stream_controller),
        ]

    def get_module_status(self) -> dict:
        """Get status information about the stream module"""
        return {
            "stream_store": type(self.stream_store).__name__,
            "frame_extractor": type(self.frame_extractor).__name__,
            "chunk_size": self.config.streaming.chunk_size,
            "verify_key_uniqueness": self.config.live.verify_key_uniqueness,
            "serialize_preview_generation": self.config.preview.serialize_generation,
        }


def create_stream_module(config: Config) -> StreamModule:
    """Factory function to create a configured stream module"""
    return StreamModule(config=config)
