"""Test fixtures for darwincross tests.

- archives: synthetic SDK, Swift bundle and cctools source archives, and a
  fake runner simulating the cctools autotools build

Import helpers in your tests using:
    from tests.fixtures.archives import make_sdk_archive, FakeBuildRunner
"""

__all__ = ["archives"]
