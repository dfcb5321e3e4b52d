"""
Spacefinder Exception Hierarchy
===============================

Domain-specific exceptions for structured error handling across the platform.
Replaces bare ``except Exception`` with semantically meaningful error types.

Usage::

    from core.exceptions import AvailabilityUnavailable, BookingConflictError

    # In a port adapter:
    raise AvailabilityUnavailable("Booking store timed out", port="bookings")

    # In a write path:
    raise BookingConflictError("Space already booked", conflicts=["b-12"])
"""

from rest_framework import status


# =============================================================================
# Base Exception
# =============================================================================

class SpacefinderError(Exception):
    """Base exception for all Spacefinder application errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "server_error"

    def __init__(self, message="An unexpected error occurred", **kwargs):
        self.message = message
        self.details = kwargs
        super().__init__(message)

    def to_dict(self):
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["detail"] = self.details
        return result


# =============================================================================
# Service Errors (external collaborators)
# =============================================================================

class ServiceError(SpacefinderError):
    """External service or collaborator call failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "service_error"

    def __init__(self, message="External service unavailable", service=None, **kwargs):
        if service:
            kwargs["service"] = service
        super().__init__(message, **kwargs)


class PortError(ServiceError):
    """A catalog, booking or analytics port failed."""

    error_code = "port_error"

    def __init__(self, message, port=None, **kwargs):
        if port:
            kwargs["port"] = port
        super().__init__(message, **kwargs)


class CatalogUnavailableError(PortError):
    """Centre / space catalog unreachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "catalog_unavailable"

    def __init__(self, message="Space catalog unavailable", **kwargs):
        kwargs.setdefault("port", "catalog")
        super().__init__(message, **kwargs)


class AvailabilityUnavailable(PortError):
    """Booking store unreachable; availability cannot be computed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "availability_unavailable"

    def __init__(self, message="Availability data unavailable", **kwargs):
        kwargs.setdefault("port", "bookings")
        super().__init__(message, **kwargs)


class PortTimeoutError(PortError):
    """A port call exceeded its timeout."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "port_timeout"


class LLMServiceError(ServiceError):
    """Intent-parsing LLM unreachable or returned garbage."""

    error_code = "llm_service_error"

    def __init__(self, message="LLM service unavailable", **kwargs):
        super().__init__(message, service="openai", **kwargs)


# =============================================================================
# Client Errors
# =============================================================================

class ValidationError(SpacefinderError):
    """Invalid input from the client."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"

    def __init__(self, message="Invalid request data", field=None, **kwargs):
        if field:
            kwargs["field"] = field
        super().__init__(message, **kwargs)


class NotFoundError(SpacefinderError):
    """Requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"

    def __init__(self, message="Resource not found", resource=None, **kwargs):
        if resource:
            kwargs["resource"] = resource
        super().__init__(message, **kwargs)


class ConflictError(SpacefinderError):
    """Resource conflict (duplicate, version mismatch, etc.)."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict"

    def __init__(self, message="Resource conflict", resource=None, **kwargs):
        if resource:
            kwargs["resource"] = resource
        super().__init__(message, **kwargs)


class BookingConflictError(ConflictError):
    """Requested dates overlap an existing pending or confirmed booking."""

    error_code = "booking_conflict"

    def __init__(self, message="Space is already booked for those dates", conflicts=None, **kwargs):
        self.conflicts = list(conflicts or [])
        super().__init__(message, resource="booking", conflicts=self.conflicts, **kwargs)


# =============================================================================
# Request lifecycle
# =============================================================================

class SearchCancelled(SpacefinderError):
    """The caller cancelled the request or its deadline passed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "search_cancelled"

    def __init__(self, message="Search was cancelled", **kwargs):
        super().__init__(message, **kwargs)

