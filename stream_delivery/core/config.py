"""
Configuration management for the Stream Delivery Engine.

This module handles all configuration settings including media storage paths,
range streaming parameters, live source naming, preview extraction and
system parameters.
"""

import json
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, asdict, field
from pathlib import Path


@dataclass
class StorageConfig:
    """Media storage configuration"""

    media_root: str = "./media"  # Recording paths like /live/<key>/x.mp4 resolve under this directory
    store_file: str = "./media/streams.json"  # JSON index backing the stream store


@dataclass
class StreamingConfig:
    """Range streaming configuration"""

    chunk_size: int = 1_000_000  # Max bytes served per range response
    read_block_size: int = 64 * 1024  # Bytes per read while flushing a range
    content_type: str = "video/mp4"

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.read_block_size <= 0:
            raise ValueError("read_block_size must be positive")


@dataclass
class LiveConfig:
    """Live source and stream key configuration"""

    namespace: str = "/live"
    extension: str = "flv"  # Live playback container
    recorded_extension: str = "mp4"  # Container of on-demand recordings
    key_bytes: int = 8  # Random bytes per key half (hex encoded, so 4x chars in total)
    verify_key_uniqueness: bool = False
    max_issue_attempts: int = 5


@dataclass
class PreviewConfig:
    """Preview frame extraction configuration"""

    extractor: str = "ffmpeg"  # ffmpeg or opencv
    ffmpeg_binary: str = "ffmpeg"
    seek_offset: str = "00:01:00"  # One minute in
    quality: int = 2  # ffmpeg -q:v, 2 is near-lossless JPEG
    timeout_seconds: int = 120
    serialize_generation: bool = False  # Per-artifact lock around check-then-generate


@dataclass
class SystemConfig:
    """System-wide configuration"""

    log_level: str = "INFO"
    log_file: Optional[str] = "stream_delivery.log"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    timezone: str = "UTC"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


class Config:
    """Main configuration manager"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file
        self.logger = logging.getLogger(__name__)

        # Default configurations
        self.storage = StorageConfig()
        self.streaming = StreamingConfig()
        self.live = LiveConfig()
        self.preview = PreviewConfig()
        self.system = SystemConfig()

        # Without a file the defaults are used as-is and nothing touches the disk
        if self.config_file:
            self.load_config()

    def load_config(self) -> None:
        """Load configuration from file"""
        config_path = Path(self.config_file)

        if config_path.exists():
            try:
                with open(config_path, "r") as f:
                    config_data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Error loading config from {config_path}: {e}")
                raise

            self.update_from_dict(config_data)
            self.logger.info(f"Configuration loaded from {config_path}")
        else:
            self.logger.info(f"Config file {config_path} not found, using defaults")
            self.save_config()  # Save default config

    def update_from_dict(self, config_data: Dict[str, Any]) -> None:
        """Replace sections present in config_data, keeping defaults for the rest"""
        if "storage" in config_data:
            self.storage = StorageConfig(**config_data["storage"])

        if "streaming" in config_data:
            self.streaming = StreamingConfig(**config_data["streaming"])

        if "live" in config_data:
            self.live = LiveConfig(**config_data["live"])

        if "preview" in config_data:
            self.preview = PreviewConfig(**config_data["preview"])

        if "system" in config_data:
            self.system = SystemConfig(**config_data["system"])

    def save_config(self) -> None:
        """Save current configuration to file"""
        if not self.config_file:
            return

        try:
            with open(self.config_file, "w") as f:
                json.dump(self.to_dict(), f, indent=2)
            self.logger.info(f"Configuration saved to {self.config_file}")
        except OSError as e:
            self.logger.error(f"Error saving config to {self.config_file}: {e}")

    def ensure_storage_directories(self) -> None:
        """Ensure media and store directories exist"""
        Path(self.storage.media_root).mkdir(parents=True, exist_ok=True)
        Path(self.storage.store_file).parent.mkdir(parents=True, exist_ok=True)
        self.logger.info("Storage directories verified/created")

    @property
    def media_root(self) -> Path:
        return Path(self.storage.media_root)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "storage": asdict(self.storage),
            "streaming": asdict(self.streaming),
            "live": asdict(self.live),
            "preview": asdict(self.preview),
            "system": asdict(self.system),
        }
