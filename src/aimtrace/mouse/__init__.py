"""
aimtrace.mouse - Motion sample providers consumed by the watcher.
"""

from aimtrace.mouse.provider import (
    SampleProvider,
    NullSampleProvider,
    BufferedSampleProvider,
)

__all__ = [
    "SampleProvider",
    "NullSampleProvider",
    "BufferedSampleProvider",
]
