"""Test utilities for trellis applications::

    from trellis.testing import TestClient
"""

from trellis.testing.client import TestClient

__all__ = ["TestClient"]
