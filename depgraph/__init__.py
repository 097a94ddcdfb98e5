"""Dependency graph with dual adjacency indexes and cycle pre-checks."""

from depgraph.config import GraphConfig
from depgraph.graph import (
    AddNodeResult,
    DependencyGraph,
    GraphSnapshot,
    GraphValidator,
    RemovedNode,
    ValidationReport,
)

__version__ = "0.1.0"

__all__ = [
    "AddNodeResult",
    "DependencyGraph",
    "GraphConfig",
    "GraphSnapshot",
    "GraphValidator",
    "RemovedNode",
    "ValidationReport",
]
