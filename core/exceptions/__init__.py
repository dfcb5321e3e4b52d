"""
core.exceptions: Re-exports for convenient imports.

Usage::

    from core.exceptions import ValidationError, NotFoundError, BookingConflictError
    from core.exceptions import spacefinder_exception_handler
"""

from .base import (
    SpacefinderError,
    ServiceError,
    PortError,
    CatalogUnavailableError,
    AvailabilityUnavailable,
    PortTimeoutError,
    LLMServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    BookingConflictError,
    SearchCancelled,
)

from .handlers import spacefinder_exception_handler

__all__ = [
    # Base
    "SpacefinderError",
    # Service / ports
    "ServiceError",
    "PortError",
    "CatalogUnavailableError",
    "AvailabilityUnavailable",
    "PortTimeoutError",
    "LLMServiceError",
    # Client
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "BookingConflictError",
    # Lifecycle
    "SearchCancelled",
    # Handler
    "spacefinder_exception_handler",
]
