"""
Stream Delivery Engine - Core Module

Configuration, logging and timezone handling shared by every component.
"""

from .config import Config
from .timezone_utils import TimezoneManager

__all__ = ["Config", "TimezoneManager"]
