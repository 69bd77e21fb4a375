#!/usr/bin/env python3
"""
Main entry point for the Stream Delivery Engine.

This script starts the API server serving recorded streams, stream keys,
the discovery feed and preview images.
"""

from stream_delivery.main import main

if __name__ == "__main__":
    main()
