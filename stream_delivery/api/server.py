"""
FastAPI Server for the Stream Delivery Engine.

Builds the application, maps domain errors onto HTTP responses and runs it
under uvicorn.
"""

import logging
from datetime import datetime
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.config import Config
from ..streams.domain.exceptions import RangeNotSatisfiable, StreamDeliveryError
from ..streams.integration import StreamModule

logger = logging.getLogger(__name__)


def create_error_response(error: StreamDeliveryError) -> JSONResponse:
    """JSON error body carrying the error's code, message and details"""
    headers = None
    if isinstance(error, RangeNotSatisfiable):
        headers = {"Content-Range": f"bytes */{error.file_size}"}

    return JSONResponse(
        status_code=error.status_code,
        content={"error": {"code": error.error_code, "message": error.message, "details": error.details}},
        headers=headers,
    )


async def stream_delivery_exception_handler(request: Request, exc: StreamDeliveryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return create_error_response(exc)


class APIServer:
    """FastAPI server for the Stream Delivery Engine"""

    def __init__(self, config: Config, stream_module: StreamModule):
        self.config = config
        self.stream_module = stream_module
        self.logger = logging.getLogger(__name__)

        self.app = FastAPI(
            title="Stream Delivery API",
            description="Range delivery of recordings, live stream keys, discovery feed and previews",
            version="1.0.0",
        )

        self.server_start_time = datetime.now()

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.system.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
        )

        self.app.add_exception_handler(StreamDeliveryError, stream_delivery_exception_handler)

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes"""

        @self.app.get("/health")
        async def health_check():
            return {"status": "healthy", "timestamp": datetime.now().isoformat()}

        @self.app.get("/system/status")
        async def get_system_status():
            """Get component and uptime information"""
            return {
                "uptime_seconds": (datetime.now() - self.server_start_time).total_seconds(),
                "streams": self.stream_module.get_module_status(),
            }

        for router in self.stream_module.get_api_routes():
            self.app.include_router(router)

    def run(self) -> None:
        """Run the uvicorn server until it is shut down"""
        host, port = self.config.system.api_host, self.config.system.api_port
        self.logger.info(f"Starting API server on {host}:{port}")

        uvicorn_config = uvicorn.Config(self.app, host=host, port=port, log_level=self.config.system.log_level.lower())
        try:
            uvicorn.Server(uvicorn_config).run()
        finally:
            self.logger.info("API server stopped")
