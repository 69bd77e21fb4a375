"""Tests for composing the stream module from configuration."""

from unittest.mock import patch

from stream_delivery.streams.infrastructure.repositories import JsonStreamStore
from stream_delivery.streams.infrastructure.transcoders import FFmpegFrameExtractor, OpenCVFrameExtractor
from stream_delivery.streams.integration import StreamModule, create_stream_module


def test_defaults_from_config(config):
    with patch("shutil.which", return_value="/usr/bin/ffmpeg"):
        module = create_stream_module(config)

    assert isinstance(module.stream_store, JsonStreamStore)
    assert isinstance(module.frame_extractor, FFmpegFrameExtractor)
    assert len(module.get_api_routes()) == 3


def test_opencv_when_configured(config):
    config.preview.extractor = "opencv"
    assert isinstance(StreamModule(config).frame_extractor, OpenCVFrameExtractor)


def test_opencv_when_ffmpeg_missing(config):
    with patch("shutil.which", return_value=None):
        module = StreamModule(config)
    assert isinstance(module.frame_extractor, OpenCVFrameExtractor)


def test_injected_dependencies(config, store, frame_extractor):
    module = StreamModule(config, stream_store=store, frame_extractor=frame_extractor)

    assert module.stream_store is store
    assert module.preview_cache.frame_extractor is frame_extractor
    assert module.get_module_status()["frame_extractor"] == "FakeFrameExtractor"
