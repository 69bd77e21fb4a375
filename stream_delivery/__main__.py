"""
Entry point for running the Stream Delivery Engine as a module.
"""

from .main import main

if __name__ == "__main__":
    main()
