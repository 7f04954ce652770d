"""
Result sinks for coverage runs.
"""
from .sinks import (
    ResultSink,
    InMemoryResultSink,
    FileResultSink,
    RESULTS_FILE,
    GEOJSON_FILE,
    AUDIT_FILE,
)

__all__ = [
    'ResultSink',
    'InMemoryResultSink',
    'FileResultSink',
    'RESULTS_FILE',
    'GEOJSON_FILE',
    'AUDIT_FILE',
]
