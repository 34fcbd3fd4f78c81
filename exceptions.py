#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Custom exception classes and error handling utilities for Videocatalog.

Provides a centralized error handling system with custom exceptions,
error mapping, and helper functions for consistent error responses.
"""

from typing import Dict, Optional
from fastapi import HTTPException, status

from config import config


# --- Base Exception Classes ---

class AppBaseError(Exception):
    """Base class for all application-specific exceptions.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        http_status_code: HTTP status code to use in API responses
        headers: Extra response headers to send with the error
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                http_status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
                headers: Optional[Dict[str, str]] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            http_status_code: HTTP status code to use in API responses
            headers: Optional extra headers for the HTTP response
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.http_status_code = http_status_code
        self.headers = headers or {}
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        """Convert this exception to a FastAPI HTTPException.

        Returns:
            HTTPException: FastAPI exception with appropriate status and headers
        """
        headers = {"X-Error-Code": self.error_code, **self.headers}

        return HTTPException(
            status_code=self.http_status_code,
            detail=self.message,
            headers=headers
        )


# --- Domain Exceptions ---

class ValidationError(AppBaseError):
    """Raised when the caller's input is malformed (e.g. path/payload id mismatch)."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            http_status_code=status.HTTP_400_BAD_REQUEST
        )


class NotFoundError(AppBaseError):
    """Raised when a video is absent or soft-deleted, or an import found nothing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            http_status_code=status.HTTP_404_NOT_FOUND
        )


class UnauthorizedError(AppBaseError):
    """Raised when a gated operation is called without a valid bearer credential."""

    def __init__(self, message: str = "Invalid or missing credentials"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            http_status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ExternalServiceError(AppBaseError):
    """Raised when the YouTube search request does not succeed."""

    def __init__(self, message: str = "External video service request failed"):
        super().__init__(
            message=message,
            error_code="EXTERNAL_SERVICE_ERROR",
            http_status_code=status.HTTP_502_BAD_GATEWAY
        )


class APIConfigurationError(AppBaseError):
    """Raised when there's an issue with the API configuration."""

    def __init__(self, message: str = "API configuration error"):
        super().__init__(
            message=message,
            error_code="API_CONFIG_ERROR",
            http_status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


# --- Error Handling Utilities ---

def internal_error_detail(exception: Exception) -> str:
    """Build the detail message for an unexpected failure.

    The exception message is only included when EXPOSE_ERROR_DETAILS is enabled.
    """
    detail = f"Internal server error: {type(exception).__name__}"
    if config.EXPOSE_ERROR_DETAILS and str(exception):
        detail = f"{detail}: {exception}"
    return detail


def handle_exception(exception: Exception) -> HTTPException:
    """Convert any exception to an appropriate HTTPException.

    Args:
        exception: The exception to handle

    Returns:
        HTTPException: FastAPI exception with appropriate status and headers
    """
    if isinstance(exception, AppBaseError):
        # Our custom exceptions already know how to convert themselves
        return exception.to_http_exception()

    elif isinstance(exception, ValueError):
        # Treat ValueError as ValidationError
        return ValidationError(str(exception)).to_http_exception()

    elif isinstance(exception, HTTPException):
        # Already a FastAPI HTTPException, just return it
        return exception

    else:
        # Unknown exception, treat as internal server error
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=internal_error_detail(exception),
            headers={"X-Error-Code": "INTERNAL_SERVER_ERROR"}
        )
