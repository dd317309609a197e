# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Retry Module.

This module provides a retry decorator with exponential backoff for Yandex Disk
API round trips. Transient transport failures and throttling/unavailability
responses are retried with increasing delays; everything else is converted to
the ydfs error taxonomy straight away.

Functions:
    retry: Decorator for retrying functions with exponential backoff.
    _convert_http_error: Helper function to convert httpx errors to ydfs exceptions.
"""
import json
import time
import logging
from functools import wraps
from typing import Type, Callable, Any, Tuple
import httpx
from .exceptions import (
    DiskError, AuthenticationError, ConflictError, NetworkError,
    NotFoundError, RemoteAPIError,
)

logger = logging.getLogger("ydfs.client")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# API error identifiers that mean "the path (or one of its parents) is absent"
NOT_FOUND_ERRORS = {"DiskNotFoundError", "DiskPathDoesntExistsError"}

def _convert_http_error(e: Exception, operation: str = None) -> DiskError:
    """
    Convert httpx errors to appropriate ydfs errors.

    Error responses from the API carry a JSON body with ``error``,
    ``message`` and ``description`` fields; those drive the mapping when
    present, the status code otherwise.

    Args:
        e (Exception): The httpx error to convert.
        operation (str, optional): The operation being performed. Defaults to None.

    Returns:
        DiskError: The converted error.
    """
    if isinstance(e, DiskError):
        return e

    if isinstance(e, httpx.TimeoutException):
        return NetworkError(f"Request timed out: {e}", code="ERR_TIMEOUT")

    if isinstance(e, httpx.TransportError):
        return NetworkError(str(e))

    if isinstance(e, httpx.HTTPStatusError):
        response = e.response
        status = response.status_code
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            body = None
        if not isinstance(body, dict):
            return RemoteAPIError(
                f"unknown response with code {status} from API: {response.text}",
                status_code=status, code="ERR_UNKNOWN",
            )

        api_error = body.get("error", "")
        message = " ".join(part for part in (body.get("message"), body.get("description"), api_error) if part)
        if operation:
            message = f"{operation}: {message}"

        if status == 404 or api_error in NOT_FOUND_ERRORS:
            return NotFoundError(message)
        if status == 409:
            return ConflictError(message)
        if status in (401, 403):
            return AuthenticationError(message)
        return RemoteAPIError(
            message, status_code=status, error=api_error,
            description=body.get("description"),
        )

    return DiskError(str(e))

def retry(
    max_attempts: int = 3,
    initial_backoff: float = 0.1,
    max_backoff: float = 5.0,
    backoff_multiplier: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (httpx.TransportError, httpx.HTTPStatusError)
) -> Callable:
    """
    Decorator for retrying a function with exponential backoff.

    This decorator wraps a function to automatically retry it when specified
    exceptions occur, with an exponential backoff delay between attempts.
    The wrapped callable may override the attempt count per instance through
    a ``max_attempts`` attribute on its first argument (the client).

    Args:
        max_attempts (int): Maximum number of attempts. Defaults to 3.
        initial_backoff (float): Initial backoff time in seconds. Defaults to 0.1.
        max_backoff (float): Maximum backoff time in seconds. Defaults to 5.0.
        backoff_multiplier (float): Multiplier for exponential backoff. Defaults to 2.0.
        retryable_exceptions (Tuple[Type[Exception], ...]): Exceptions that trigger a retry.
            Defaults to (httpx.TransportError, httpx.HTTPStatusError).

    Returns:
        Callable: A decorator that wraps the function.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """
            Executes the function with retry logic and exponential backoff.

            Returns:
                Any: Result of the function call.

            Raises:
                DiskError: If the call fails with a non-retryable error or
                    all retry attempts fail.
            """
            attempts = max_attempts
            if args and isinstance(getattr(args[0], "max_attempts", None), int):
                attempts = max(1, args[0].max_attempts)

            operation = kwargs.get("operation")
            last_exception = None
            backoff = initial_backoff

            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e

                    if isinstance(e, httpx.HTTPStatusError):
                        status_code = e.response.status_code
                        if status_code not in RETRYABLE_STATUS_CODES:
                            logger.debug(f"Non-retryable HTTP status {status_code} during {func.__name__}")
                            raise _convert_http_error(e, operation) from e
                        logger.warning(f"Retryable HTTP status {status_code} during {func.__name__}. "
                                       f"Attempt {attempt + 1}/{attempts}. Retrying after {backoff:.2f}s...")
                    else:
                        logger.warning(f"Transport error {type(e).__name__} during {func.__name__}. "
                                       f"Attempt {attempt + 1}/{attempts}. Retrying after {backoff:.2f}s...")

                    if attempt < attempts - 1:
                        time.sleep(backoff)
                        backoff = min(backoff * backoff_multiplier, max_backoff)

            logger.error(f"{func.__name__} failed after {attempts} attempts: {last_exception}")
            raise _convert_http_error(last_exception, operation) from last_exception

        return wrapper
    return decorator
