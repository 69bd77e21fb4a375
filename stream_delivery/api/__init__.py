"""
HTTP API for the Stream Delivery Engine.
"""

from .server import APIServer

__all__ = ["APIServer"]
