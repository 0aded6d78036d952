"""Test utilities for wren applications.

Provides an in-process test client and response assertions::

    from wren.testing import TestClient, assert_json
"""

from wren.testing.assertions import assert_header, assert_json, assert_status
from wren.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_header",
    "assert_json",
    "assert_status",
]
