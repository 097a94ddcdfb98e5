"""Graph module for dependency tracking and cycle pre-checks.

This module provides the DependencyGraph structure, its snapshot model for
loading and exporting state, and a validator that audits graph consistency.
"""

from depgraph.graph.dependency_graph import AddNodeResult, DependencyGraph, RemovedNode
from depgraph.graph.snapshot import GraphSnapshot
from depgraph.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "AddNodeResult",
    "DependencyGraph",
    "GraphSnapshot",
    "GraphValidator",
    "RemovedNode",
    "ValidationReport",
]
