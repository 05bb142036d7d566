#!/usr/bin/env python

"""Utilities tests."""

import pytest

from docker_registry_api.utils import (
    get_nested,
    must_be_equal,
    must_be_mapping,
    must_be_successful,
)

from .testutils import make_response


def test_get_nested():
    """Test nested lookups across mappings and sequences."""
    value = {"a": [{"b": {"c": 1}}]}
    assert get_nested(value, "a", 0, "b", "c") == 1
    assert get_nested(value) == value
    assert get_nested(value, "a", 1, "b") is None
    assert get_nested(value, "x", default="d") == "d"
    assert get_nested(value, "a", "b") is None
    assert get_nested(None, "a") is None


def test_must_be_equal():
    """Test that must_be_equal can detect inequality."""
    must_be_equal(1, 1)
    must_be_equal("a", "a")
    with pytest.raises(RuntimeError) as exception:
        must_be_equal(1, 2)
    assert "1" in str(exception.value)
    assert "2" in str(exception.value)
    with pytest.raises(RuntimeError) as exception:
        must_be_equal(1, 2, "custom message")
    assert "custom message" in str(exception.value)
    with pytest.raises(ValueError):
        must_be_equal(1, 2, error_type=ValueError)


def test_must_be_successful():
    """Test that must_be_successful accepts 2xx statuses only."""
    for status in [200, 201, 202, 204]:
        must_be_successful(make_response(status))
    for status in [100, 301, 401, 404, 500]:
        with pytest.raises(KeyError) as exception:
            must_be_successful(make_response(status), "context", error_type=KeyError)
        assert str(status) in str(exception.value)


def test_must_be_mapping():
    """Test that must_be_mapping rejects non-objects."""
    must_be_mapping({})
    for value in [[], "x", 1, None]:
        with pytest.raises(RuntimeError):
            must_be_mapping(value)
