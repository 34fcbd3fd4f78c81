#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI Middleware classes for Videocatalog.

Includes the request body size guard, security headers and the
per-request completion log.
"""

import logging
import time

from fastapi import Request, Response, status, FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

# Import config for settings
from config import config
from exceptions import internal_error_detail
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

# Requests slower than this are logged as slow responses
SLOW_RESPONSE_MS = 3000


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Outermost middleware for request guards, response headers and logging.

    Handles:
    1. Content length limits for request bodies
    2. Security headers for responses
    3. One completion log record per request
    4. Conversion of errors that escaped the routes into a JSON 500
    """

    def __init__(self, app: FastAPI, max_content_length: int = config.MAX_CONTENT_LENGTH):
        """Initialize the middleware.

        Args:
            app: The FastAPI application instance
            max_content_length: Maximum allowed request content length in bytes
        """
        super().__init__(app)
        self.max_content_length = max_content_length
        logger.info(f"RequestLoggingMiddleware initialized. Max content length: {max_content_length / (1024*1024):.2f} MB")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request with the size guard and completion logging."""
        start_time = time.monotonic()
        path = request.url.path
        method = request.method
        client_ip = request.client.host if request.client else "unknown"
        request_logger = logger.bind(path=path, method=method, client_ip=client_ip)

        # --- Security Check: Content Length ---
        if method in ("POST", "PUT", "PATCH"):
            content_length_header = request.headers.get("content-length")
            if content_length_header:
                try:
                    content_length = int(content_length_header)
                    if content_length > self.max_content_length:
                        request_logger.warning(
                            f"Request body too large: {content_length} bytes > {self.max_content_length} bytes limit."
                        )
                        return JSONResponse(
                            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                            content={
                                "detail": f"Request body is too large. Maximum allowed size is {self.max_content_length / (1024*1024):.1f} MB.",
                                "error_code": "CONTENT_TOO_LARGE"
                            }
                        )
                except ValueError:
                    request_logger.warning(f"Invalid Content-Length header: {content_length_header}")

        # --- Process Request ---
        try:
            response = await call_next(request)
        except Exception as exc:
            request_logger.error("Unhandled exception during request processing", error=str(exc), exc_info=True)
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": internal_error_detail(exc), "error_code": "UNHANDLED_EXCEPTION"}
            )

        # --- Add Security Headers ---
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # --- Completion Log ---
        process_time_ms = round((time.monotonic() - start_time) * 1000, 2)
        status_code = response.status_code

        log_level = logging.INFO
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING

        if log_level == logging.ERROR:
            request_logger.error("Request completed", status_code=status_code, duration_ms=process_time_ms, exc_info=False)
        elif log_level == logging.WARNING:
            request_logger.warning("Request completed", status_code=status_code, duration_ms=process_time_ms)
        else:
            request_logger.info("Request completed", status_code=status_code, duration_ms=process_time_ms)

        if process_time_ms > SLOW_RESPONSE_MS:
            request_logger.warning(f"Slow response: {method} {path}", duration_ms=process_time_ms)

        return response
