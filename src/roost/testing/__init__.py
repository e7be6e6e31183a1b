"""Testing utilities for roost applications."""

from roost.testing.client import TestClient

__all__ = ["TestClient"]
