"""
Testing utilities module.

Provides helpers and utilities for testing applications using miraveja-buildplan.
"""

from .utilities import RecordingVisitor, StubBuildSession, TestContainer, create_mock_container

__all__ = [
    "TestContainer",
    "create_mock_container",
    "StubBuildSession",
    "RecordingVisitor",
]
