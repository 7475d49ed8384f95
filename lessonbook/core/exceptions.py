# lessonbook/core/exceptions.py
"""
Domain-specific exceptions for the lesson booking API.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# Specific business exceptions


class InsufficientCapacityException(ConflictException):
    """Raised when a lesson has fewer spaces left than an order requests."""

    def __init__(
        self,
        lesson_id: str,
        topic: Optional[str],
        available: int,
        requested: int,
    ):
        label = topic or lesson_id
        super().__init__(
            message=(
                f"Insufficient capacity for lesson '{label}': "
                f"{available} available, {requested} requested"
            ),
            code="INSUFFICIENT_CAPACITY",
            details={
                "lesson_id": lesson_id,
                "topic": topic,
                "available": available,
                "requested": requested,
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
