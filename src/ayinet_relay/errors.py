"""
Ayinet relay error types.
"""

from typing import Any, Optional


class AyinetError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(AyinetError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("validation_error", message, details)


class PersistenceError(AyinetError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("persistence_error", message, details)


class ConfigError(AyinetError):
    def __init__(self, message: str):
        super().__init__("config_error", message)


class ConnectionError(AyinetError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)
