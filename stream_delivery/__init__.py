"""
Stream Delivery Engine

Serves recorded streams over HTTP byte ranges, issues live stream keys,
builds a fair discovery feed across users and extracts preview frames.
"""

__version__ = "1.0.0"

from .main import StreamDeliverySystem

__all__ = ["StreamDeliverySystem"]
