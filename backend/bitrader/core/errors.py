"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``bitrader.main`` renders
them as ``{"message": ...}`` responses.
"""
from typing import Optional


class BitraderError(Exception):
    """Base exception for all application errors"""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(BitraderError):
    """Request content is missing or inconsistent"""
    status_code = 400


class NotFoundError(BitraderError):
    """Resource not found errors"""
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[object] = None):
        if resource_id is not None:
            message = f"{resource_type} {resource_id} not found"
        else:
            message = f"{resource_type} not found"
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class InvalidTransitionError(BitraderError):
    """Record is not in a state that allows the requested transition"""
    status_code = 409

    def __init__(self, resource_type: str, resource_id: object, state: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.state = state
        super().__init__(f"{resource_type} {resource_id} is {state}")
