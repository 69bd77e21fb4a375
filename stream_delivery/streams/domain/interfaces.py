"""
Stream Domain Interfaces.

Abstract interfaces for the collaborators the engine consumes but does not own:
the stream store and the out-of-process transcoder.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import Stream, Tag, UserRef


class StreamStore(ABC):
    """Abstract store of streams, users and tags"""

    @abstractmethod
    async def active_streams(self, search_query: Optional[str] = None) -> List[Stream]:
        """Get live streams, optionally filtered by search text"""
        pass

    @abstractmethod
    async def stream_by_id(self, stream_id: int) -> Optional[Stream]:
        """Get stream by ID"""
        pass

    @abstractmethod
    async def users_with_streams(
        self,
        limit: int,
        search_query: Optional[str] = None
    ) -> List[UserRef]:
        """Get up to limit users with finished streams, most active first"""
        pass

    @abstractmethod
    async def finished_streams_for_users(
        self,
        user_ids: Sequence[int],
        search_query: Optional[str] = None
    ) -> List[Stream]:
        """Get finished streams of the given users, each user's most recent first"""
        pass

    @abstractmethod
    async def finished_streams_for_user(self, user_id: int) -> List[Stream]:
        """Get one user's finished streams, most recent first"""
        pass

    @abstractmethod
    async def create_stream(self, fields: Dict[str, Any]) -> Stream:
        """Create a stream from user_id, stream_key, title and optional preview"""
        pass

    @abstractmethod
    async def tag_stream(self, stream: Stream, tag_names: Iterable[str]) -> Stream:
        """Attach tags to a stream, creating unknown tags"""
        pass

    @abstractmethod
    async def latest_stream_key_for_user(self, user_id: int) -> Optional[str]:
        """Get the key of the user's most recent stream"""
        pass

    @abstractmethod
    async def stream_key_in_use(self, stream_key: str) -> bool:
        """Check if any stream was created with this key"""
        pass

    @abstractmethod
    async def attach_recording(self, stream_key: str, path: str) -> Optional[Stream]:
        """Bind a recording to the live stream that owns the key"""
        pass

    @abstractmethod
    async def tags(self) -> List[Tag]:
        """Get all tags"""
        pass


class FrameExtractor(ABC):
    """Abstract single-frame transcoder"""

    @abstractmethod
    async def extract_frame(self, input_path: Path, output_path: Path, seek_offset: str) -> Path:
        """Write one JPEG frame taken at seek_offset; raise ExternalToolFailure on failure"""
        pass
