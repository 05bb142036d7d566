#!/usr/bin/env python

"""Utility functions."""

from typing import Any, Mapping

from .typing import TransportResponse


def get_nested(value: Any, *keys, default=None) -> Any:
    """
    Walks a nested structure of mappings and sequences.

    Args:
        value: The root of the structure.
        keys: Mapping keys or sequence indices, outermost first.
        default: Returned when any step of the path is missing.

    Returns:
        The value at the end of the path, or the default value.
    """
    for key in keys:
        try:
            value = value[key]
        except (IndexError, KeyError, TypeError):
            return default
    return value


def must_be_equal(
    expected,
    actual,
    msg: str = "Actual value does not match expected value",
    *,
    error_type=RuntimeError,
):
    """
    Compares two values and raises an exception if they are not equal.

    Args:
        expected: The expected value.
        actual: The actual value.
        msg: Message describing the context of the comparison.
        error_type: The type of exception to be raised if not equal.
    """
    if actual != expected:
        raise error_type(f"{msg}: {actual} != {expected}")


def must_be_successful(
    response: TransportResponse,
    msg: str = "Unexpected response status",
    *,
    error_type=RuntimeError,
):
    """
    Raises an exception if a response does not carry a 2xx status.

    Args:
        response: The response to be checked.
        msg: Message describing the context of the request.
        error_type: The type of exception to be raised if not successful.
    """
    if not 200 <= response.status < 300:
        raise error_type(f"{msg}: {response.status}")


def must_be_mapping(value, msg: str = "Not a JSON object", *, error_type=RuntimeError):
    """
    Raises an exception if a decoded JSON value is not an object.

    Args:
        value: The decoded value.
        msg: Message describing the context of the value.
        error_type: The type of exception to be raised if not a mapping.
    """
    if not isinstance(value, Mapping):
        raise error_type(f"{msg}: {type(value).__name__}")
