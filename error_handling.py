#!/usr/bin/env python3
"""
Error Handling Framework for EventPump
Provides custom exceptions, retry logic and operation tracking.
"""

import logging
import time
import functools
from typing import Callable, Optional, Any


# ==================== CUSTOM EXCEPTIONS ====================

class EventPumpError(Exception):
    """Base exception for all EventPump errors."""

    def __init__(self, message: str, suggestion: Optional[str] = None, original_error: Optional[Exception] = None):
        self.message = message
        self.suggestion = suggestion
        self.original_error = original_error
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with suggestion."""
        msg = self.message
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        if self.original_error:
            msg += f"\n\nOriginal error: {str(self.original_error)}"
        return msg


class ConfigurationError(EventPumpError, ValueError):
    """Raised when a session or storage is wired up incorrectly."""


class ReadOnlySettingError(ConfigurationError):
    """Raised when a caller writes a derived, read-only setting."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(
            f"{setting} is a read-only flag",
            "It is derived from the inbound request when the session is created."
        )


class ProtectedSettingError(ConfigurationError):
    """Raised when a caller removes one of the built-in settings."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(
            f"{setting} is not allowed to be removed",
            "Set it to a different value instead."
        )


class MechanismNotRegisteredError(ConfigurationError):
    """Raised when a storage mechanism name has no registered implementation."""

    def __init__(self, mechanism: str, available: list = None):
        self.mechanism = mechanism
        suggestion = (
            "Registered mechanisms:\n  " + "\n  ".join(available)
            if available else "Register it with MechanismRegistry.register() first"
        )
        super().__init__(f"{mechanism} mechanism has not been registered", suggestion)


class ClientDisconnectedError(EventPumpError):
    """Raised when writing to the client fails; the session is over."""

    def __init__(self, original_error: Optional[Exception] = None):
        super().__init__(
            "Client connection lost while streaming",
            "The client reconnects on its own and resumes from Last-Event-ID.",
            original_error
        )


class StorageError(EventPumpError):
    """Raised when a storage backend operation fails."""

    def __init__(self, operation: str, key: str = "", original_error: Optional[Exception] = None):
        message = f"Failed to {operation} storage key{' ' + repr(key) if key else ''}"
        suggestion = (
            "Check that:\n"
            "  1. The storage directory exists and is writable\n"
            "  2. The disk has sufficient space\n"
            "  3. The stored value is JSON serializable"
        )
        super().__init__(message, suggestion, original_error)


# ==================== RETRY DECORATOR ====================

def retry_with_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: tuple = (Exception,)
):
    """
    Decorator to retry a function with exponential backoff.

    Args:
        max_attempts: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay after each retry
        exceptions: Tuple of exception types to catch and retry

    Example:
        @retry_with_backoff(max_attempts=3, initial_delay=0.1, exceptions=(OSError,))
        def write_file():
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            attempt = 1
            delay = initial_delay

            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        logging.error(f"{func.__name__} failed after {max_attempts} attempts: {e}")
                        raise

                    logging.warning(
                        f"{func.__name__} failed (attempt {attempt}/{max_attempts}). "
                        f"Retrying in {delay:.1f}s... Error: {e}"
                    )

                    time.sleep(delay)
                    delay *= backoff_factor
                    attempt += 1

        return wrapper
    return decorator


# ==================== CONTEXT MANAGER FOR ERROR TRACKING ====================

class ErrorContext:
    """Context manager that logs an operation's duration and failure."""

    def __init__(self, operation: str, clock: Callable[[], float] = time.monotonic):
        self.operation = operation
        self.clock = clock
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = self.clock()
        logging.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = self.clock() - self.start_time

        if exc_type is None:
            logging.debug(f"Completed: {self.operation} ({self.duration:.2f}s)")
        elif issubclass(exc_type, GeneratorExit):
            logging.debug(f"Closed: {self.operation} after {self.duration:.2f}s")
        else:
            logging.error(f"Failed: {self.operation} after {self.duration:.2f}s - {exc_val}")

        return False  # Never swallow
