"""Graph validation with consistency checks and cycle path reporting.

This module audits a DependencyGraph from the outside, through its exported
snapshot. It checks that the forward and reverse indexes are still inverses,
that the cached node count matches the forward index, lists edges to
unregistered IDs, and reports every cycle with its full path. Unlike the
graph's own cycle pre-check, the search here keeps a visited set and is safe
on graphs that already contain cycles.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from depgraph.graph.dependency_graph import DependencyGraph

logger = structlog.get_logger(__name__)


@dataclass
class ValidationReport:
    """Report containing validation results for a dependency graph.

    Attributes:
        is_valid: Whether the graph passed all validation checks
        errors: List of error messages (critical issues)
        warnings: List of warning messages (potential issues)
        cycles: List of detected cycles, each represented as a list of node IDs
        missing_refs: Set of IDs referenced as dependencies but not registered
        duality_violations: (dependent, dependency) pairs present in only one index
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    missing_refs: set[str] = field(default_factory=set)
    duality_violations: set[tuple[str, str]] = field(default_factory=set)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = []
        lines.append(f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}")
        lines.append(f"Errors: {len(self.errors)}")
        lines.append(f"Warnings: {len(self.warnings)}")
        lines.append(f"Cycles: {len(self.cycles)}")
        lines.append(f"Missing References: {len(self.missing_refs)}")
        lines.append(f"Duality Violations: {len(self.duality_violations)}")

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nCycles Detected:")
            for i, cycle in enumerate(self.cycles, 1):
                cycle_path = " -> ".join(cycle)
                lines.append(f"  {i}. {cycle_path}")

        if self.missing_refs:
            lines.append(f"\nMissing References: {', '.join(sorted(self.missing_refs))}")

        return "\n".join(lines)


class GraphValidator:
    """Validator for dependency graphs with detailed error reporting.

    This class provides:
    - Forward/reverse index consistency checks
    - Node count consistency check
    - Missing reference detection
    - Cycle detection with complete path information
    - Graph visualization generation
    """

    def __init__(self):
        """Initialize the graph validator."""
        self._visited: set[str] = set()
        self._rec_stack: set[str] = set()
        self._path: list[str] = []

    def validate(self, graph: "DependencyGraph") -> ValidationReport:
        """Validate a dependency graph and generate a detailed report.

        Args:
            graph: The DependencyGraph to validate

        Returns:
            ValidationReport containing all validation results
        """
        snapshot = graph.export()
        dependencies = snapshot.dependencies
        dependers = snapshot.dependers

        logger.info("starting_graph_validation", node_count=len(dependencies))

        report = ValidationReport()

        node_count = graph.get_number_of_nodes()
        if node_count != len(dependencies):
            report.add_error(
                f"Cached node count {node_count} does not match "
                f"{len(dependencies)} registered nodes",
            )

        violations = self._check_duality(dependencies, dependers)
        if violations:
            report.duality_violations = violations
            for dependent, dependency in sorted(violations):
                report.add_error(
                    f"Edge {dependent} -> {dependency} is not mirrored in both indexes",
                )

        missing = self._check_missing_refs(dependencies)
        if missing:
            report.missing_refs = missing
            refs_str = ", ".join(sorted(missing))
            report.add_warning(
                f"IDs referenced as dependencies but not registered as nodes: {refs_str}",
            )

        cycles = self._detect_cycles(dependencies)
        if cycles:
            report.cycles = cycles
            for cycle in cycles:
                cycle_path = " -> ".join(cycle)
                report.add_error(f"Cycle detected: {cycle_path}")

        logger.info(
            "graph_validation_complete",
            is_valid=report.is_valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def _check_duality(
        self,
        dependencies: dict[str, set[str]],
        dependers: dict[str, set[str]],
    ) -> set[tuple[str, str]]:
        """Find edges between registered nodes that only one index records.

        Args:
            dependencies: Forward index
            dependers: Reverse index

        Returns:
            Set of (dependent, dependency) pairs breaking the inverse relation
        """
        violations: set[tuple[str, str]] = set()

        for dependent, deps in dependencies.items():
            for dep in deps:
                # Edges to unregistered IDs are reported as missing refs instead.
                if dep in dependencies and dependent not in dependers.get(dep, set()):
                    violations.add((dependent, dep))

        for dependency, reverse in dependers.items():
            for dependent in reverse:
                if dependency not in dependencies.get(dependent, set()):
                    violations.add((dependent, dependency))

        if violations:
            logger.debug("duality_violations_found", count=len(violations))

        return violations

    def _check_missing_refs(self, dependencies: dict[str, set[str]]) -> set[str]:
        """Check for IDs referenced as dependencies but not registered as nodes.

        Args:
            dependencies: Forward index

        Returns:
            Set of IDs that are referenced but not registered
        """
        registered = set(dependencies.keys())
        referenced = set()

        for deps in dependencies.values():
            referenced.update(deps)

        missing = referenced - registered

        if missing:
            logger.debug("missing_references_found", count=len(missing), ids=sorted(missing))

        return missing

    def _detect_cycles(self, dependencies: dict[str, set[str]]) -> list[list[str]]:
        """Detect cycles in the graph using DFS.

        Args:
            dependencies: Forward index

        Returns:
            List of cycles, where each cycle is a list of node IDs forming the cycle
        """
        if not dependencies:
            return []

        self._visited = set()
        self._rec_stack = set()
        self._path = []
        cycles = []

        for node in sorted(dependencies):
            if node not in self._visited:
                cycle = self._dfs_cycle_detect(node, dependencies)
                if cycle:
                    cycles.append(cycle)

        return cycles

    def _dfs_cycle_detect(
        self,
        node: str,
        dependencies: dict[str, set[str]],
    ) -> list[str] | None:
        """DFS-based cycle detection that returns the cycle path.

        Args:
            node: Current node being visited
            dependencies: Forward index

        Returns:
            List representing the cycle path if found, None otherwise
        """
        self._visited.add(node)
        self._rec_stack.add(node)
        self._path.append(node)

        for dep in sorted(dependencies.get(node, set())):
            if dep not in self._visited:
                cycle = self._dfs_cycle_detect(dep, dependencies)
                if cycle:
                    return cycle
            elif dep in self._rec_stack:
                cycle_start_idx = self._path.index(dep)
                cycle = [*self._path[cycle_start_idx:], dep]
                # Leave the stack clean for the next root.
                self._rec_stack.clear()
                self._path.clear()
                return cycle

        self._rec_stack.discard(node)
        if self._path:
            self._path.pop()
        return None

    def generate_visualization(
        self,
        graph: "DependencyGraph",
        output_format: str = "mermaid",
    ) -> str:
        """Render the graph with arrows pointing from dependency to dependent.

        Edges whose dependency is not a registered node are drawn dashed.

        Args:
            graph: The DependencyGraph to visualize
            output_format: 'mermaid' or 'dot' (case-insensitive)

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()
        if output_format not in _RENDERERS:
            error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
            raise ValueError(error_msg)

        dependencies = graph.export().dependencies
        return _RENDERERS[output_format](dependencies, _sorted_edges(dependencies))


def _sorted_edges(dependencies: dict[str, set[str]]) -> list[tuple[str, str, bool]]:
    """(dependency, dependent, registered) triples in a stable order."""
    return [
        (dep, node_id, dep in dependencies)
        for node_id, deps in sorted(dependencies.items())
        for dep in sorted(deps)
    ]


def _mermaid(dependencies: dict[str, set[str]], edges: list[tuple[str, str, bool]]) -> str:
    def node_ref(node_id: str) -> str:
        return _MERMAID_UNSAFE.sub("_", node_id)

    lines = ["graph TD"]
    if not dependencies:
        lines.append("    Empty[Empty Graph]")
    lines.extend(f"    {node_ref(node_id)}[{node_id}]" for node_id in sorted(dependencies))
    lines.extend(
        f"    {node_ref(dep)} {'-->' if registered else '-.->'} {node_ref(node_id)}"
        for dep, node_id, registered in edges
    )
    return "\n".join(lines)


def _dot(dependencies: dict[str, set[str]], edges: list[tuple[str, str, bool]]) -> str:
    def quoted(node_id: str) -> str:
        return '"' + node_id.replace('"', '\\"') + '"'

    lines = [
        "digraph DependencyGraph {",
        "    rankdir=LR;",
        "    node [shape=box, style=rounded];",
    ]
    if not dependencies:
        lines.append('    Empty [label="Empty Graph"];')
    lines.extend(f"    {quoted(node_id)};" for node_id in sorted(dependencies))
    for dep, node_id, registered in edges:
        style = "" if registered else " [style=dashed]"
        lines.append(f"    {quoted(dep)} -> {quoted(node_id)}{style};")
    lines.append("}")
    return "\n".join(lines)


_MERMAID_UNSAFE = re.compile(r"\W")
_RENDERERS = {"mermaid": _mermaid, "dot": _dot}
