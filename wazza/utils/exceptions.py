# wazza/utils/exceptions.py
"""
Central place for all application-specific exceptions.
Routes raise these; error_handlers turns them into JSON.
"""
from __future__ import annotations

class WazzaError(Exception):
    """Base exception for all app errors, never raised directly."""
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **payload):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.payload = payload

class ValidationError(WazzaError):
    status_code = 400
    message = "Invalid input"

class AuthenticationError(WazzaError):
    status_code = 401
    message = "Not authenticated"

class AuthorizationError(WazzaError):
    status_code = 403
    message = "You do not have permission to perform this action"

class NotFoundError(WazzaError):
    status_code = 404
    message = "The requested resource was not found"

class ConflictError(WazzaError):
    status_code = 409
    message = "The resource is not in a state that allows this action"

class EncryptionError(WazzaError):
    status_code = 500
    message = "Encryption failed"
