"""
Exception classes for DineBook Service
"""


class DineBookException(Exception):
    """Base exception for DineBook Service"""
    pass


class NotFoundError(DineBookException):
    """Resource not found"""
    pass


class ValidationError(DineBookException):
    """Validation error"""
    pass


class AuthenticationError(DineBookException):
    """Authentication error"""
    pass


class AuthorizationError(DineBookException):
    """Authorization error"""
    pass


class ConflictError(DineBookException):
    """Request conflicts with the current state (capacity, duplicates)"""
    pass


class CapacityExceededError(ConflictError):
    """Not enough seats left at the requested slot"""

    def __init__(self, available_capacity: int):
        self.available_capacity = available_capacity
        super().__init__(f"Only {available_capacity} seats available")


class GeoQueryError(DineBookException):
    """Geospatial query could not be executed (e.g. missing 2dsphere index)"""
    pass
