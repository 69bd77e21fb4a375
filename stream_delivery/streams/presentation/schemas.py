"""
Stream API Request/Response Schemas.

Pydantic models for API serialization and validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import FeedEntry, Stream


class TagResponse(BaseModel):
    """Tag response model"""
    id: int
    name: str


class StreamResponse(BaseModel):
    """Stream record, with its playback source when one was resolved"""
    id: int = Field(..., description="Stream identifier")
    user_id: int = Field(..., description="Owning user")
    stream_key: str = Field(..., description="Key the stream was broadcast with")
    path: Optional[str] = Field(None, description="Recording path, set once the stream has finished")
    preview: Optional[str] = Field(None, description="Uploaded preview image path")
    title: str = Field(..., description="Stream title")
    tags: List[TagResponse] = Field(default_factory=list)
    createdAt: datetime = Field(..., description="Creation timestamp")
    source: Optional[str] = Field(None, description="Live or recorded playback source")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 12,
                "user_id": 3,
                "stream_key": "9f2c4e1ab07d3c55e6a1f08d2b7c9e44",
                "path": "/live/9f2c4e1ab07d3c55e6a1f08d2b7c9e44/2021-05-01-12-00-00.flv",
                "preview": "images/cover.png",
                "title": "Evening speedrun",
                "tags": [{"id": 1, "name": "games"}],
                "createdAt": "2021-05-01T12:00:00+00:00",
                "source": "/live/9f2c4e1ab07d3c55e6a1f08d2b7c9e44/2021-05-01-12-00-00.mp4",
            }
        }
    )

    @classmethod
    def from_stream(cls, stream: Stream, source: Optional[str] = None) -> "StreamResponse":
        return cls(
            id=stream.id,
            user_id=stream.user_id,
            stream_key=stream.stream_key,
            path=stream.path,
            preview=stream.preview,
            title=stream.title,
            tags=[TagResponse(id=tag.id, name=tag.name) for tag in sorted(stream.tags, key=lambda tag: tag.id)],
            createdAt=stream.created_at,
            source=source,
        )

    @classmethod
    def from_entry(cls, entry: FeedEntry) -> "StreamResponse":
        return cls.from_stream(entry.stream, entry.source)


class StreamKeyResponse(BaseModel):
    """Freshly issued stream key"""
    key: str


class LatestStreamKeyResponse(BaseModel):
    """Latest stream key of the caller, empty when none exists"""
    stream_key: str


class CreateStreamRequest(BaseModel):
    """Stream creation request"""
    title: str = Field(..., min_length=1, description="Stream title")
    stream_key: str = Field(..., min_length=1, description="Key issued by /keys/new")
    preview: Optional[str] = Field(None, description="Preview image path")
    tags: List[str] = Field(default_factory=list, description="Tag names, created when unknown")


class FinalizeRecordingRequest(BaseModel):
    """Recording produced by the ingest server for a live stream"""
    stream_key: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1, description="Media path of the recording, e.g. /live/<key>/<file>.flv")
