"""Errors raised by the TOTP engine."""

from typing import Optional


class InvalidArgumentError(ValueError):
    """A required argument is missing or outside the accepted range."""

    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"{name} must not be None")
        self.name = name
