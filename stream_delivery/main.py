"""
Main Application Coordinator for the Stream Delivery Engine.

This module loads configuration, sets up logging, composes the stream module
and runs the API server.
"""

import logging
import sys
from typing import Optional

from .core.config import Config
from .core.logging_config import setup_logging, get_error_tracker
from .streams.integration import StreamModule
from .api.server import APIServer


class StreamDeliverySystem:
    """Main application coordinator for the Stream Delivery Engine"""

    def __init__(self, config_file: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration first (basic logging will be used initially)
        self.config = Config(config_file)
        if log_level:
            self.config.system.log_level = log_level

        self.logger_setup = setup_logging(log_level=self.config.system.log_level, log_file=self.config.system.log_file)
        self.logger = logging.getLogger(__name__)
        self.error_tracker = get_error_tracker("main_system")

        self.config.ensure_storage_directories()

        self.stream_module = StreamModule(self.config)
        self.api_server = APIServer(self.config, self.stream_module)

        self.logger.info("Stream Delivery Engine initialized")

    def run(self) -> None:
        """Serve until interrupted"""
        self.logger.info(f"Media root: {self.config.storage.media_root}, store: {self.config.storage.store_file}")

        try:
            self.api_server.run()
        except KeyboardInterrupt:
            self.logger.info("Keyboard interrupt received")
        except Exception as e:
            self.error_tracker.log_error(e, "api_server")
            raise


def main():
    """Main entry point for the application"""
    import argparse

    parser = argparse.ArgumentParser(description="Stream Delivery Engine")
    parser.add_argument("--config", type=str, help="Path to configuration file", default="config.json")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Override log level", default=None)

    args = parser.parse_args()

    system = StreamDeliverySystem(args.config, log_level=args.log_level)

    try:
        system.run()
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
