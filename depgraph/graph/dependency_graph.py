"""Dependency graph with mirrored forward and reverse adjacency indexes.

This module provides the DependencyGraph class, which records "depends-on"
relationships between named nodes and answers membership, relationship and
cycle pre-check queries. A build system or module loader uses it to decide
load order and to reject edges that would make the order unsatisfiable.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from depgraph.graph.snapshot import GraphSnapshot

if TYPE_CHECKING:
    from depgraph.config import GraphConfig

logger = structlog.get_logger(__name__)

_EMPTY: frozenset[str] = frozenset()


class AddNodeResult(Enum):
    """Outcome of DependencyGraph.add_node.

    Attributes:
        ADDED: A new node was created
        UPDATED: The node already existed and its dependencies were replaced
        FAILED: The input was malformed and nothing was changed
    """

    ADDED = "ADDED"
    UPDATED = "UPDATED"
    FAILED = "FAILED"


@dataclass
class RemovedNode:
    """Edges a removed node had at the moment it was removed.

    Attributes:
        dependencies: IDs the removed node depended on
        dependers: IDs that depended on the removed node
    """

    dependencies: list[str] = field(default_factory=list)
    dependers: list[str] = field(default_factory=list)


def _as_id_set(dependencies: Iterable[str] | Mapping[str, Any] | None) -> set[str]:
    """Normalize a dependency argument into a fresh set of IDs.

    Raises:
        TypeError: If the argument is a bare string, is not iterable, or
            contains IDs that are not strings
    """
    if dependencies is None:
        return set()
    if isinstance(dependencies, str):
        msg = f"Dependencies must be an iterable of IDs, not a string: {dependencies!r}"
        raise TypeError(msg)
    ids = set(dependencies)
    invalid = [dep for dep in ids if not isinstance(dep, str)]
    if invalid:
        msg = f"Dependency IDs must be strings, got {invalid!r}"
        raise TypeError(msg)
    return ids


class DependencyGraph:
    """Directed graph of depends-on edges between named nodes.

    Two maps are kept as mutual inverses: ``dependencies[a]`` holds the IDs
    ``a`` depends on, ``dependers[b]`` holds the IDs that depend on ``b``.
    Every mutator updates both. A node exists iff it has a key in the forward
    map. Edges to IDs that were not registered when the edge was installed
    stay in the forward set only.

    Queries never raise for unknown nodes. They report "no relationship".

    Thread-safety:
        This class is NOT thread-safe. Serialize access externally if more
        than one thread mutates the graph.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_node("m1")
        <AddNodeResult.ADDED: 'ADDED'>
        >>> graph.add_node("m2", ["m1"])
        <AddNodeResult.ADDED: 'ADDED'>
        >>> graph.depends_on("m2", "m1")
        True
        >>> graph.will_make_dependency_cycle("m1", "m2")
        True
    """

    def __init__(self, snapshot: GraphSnapshot | Mapping[str, Any] | None = None):
        """Initialize the graph, optionally from previously exported state.

        Args:
            snapshot: A GraphSnapshot, or a mapping with the same fields, to
                load. The forward and reverse maps are trusted to be inverses.
        """
        if snapshot is None:
            snapshot = GraphSnapshot()
        elif not isinstance(snapshot, GraphSnapshot):
            snapshot = GraphSnapshot.model_validate(snapshot)

        self._dependencies: dict[str, set[str]] = {
            node_id: set(deps) for node_id, deps in snapshot.dependencies.items()
        }
        self._dependers: dict[str, set[str]] = {
            node_id: set(deps) for node_id, deps in snapshot.dependers.items()
        }
        for node_id in self._dependencies:
            self._dependers.setdefault(node_id, set())
        self._cycle_allowed = snapshot.cycle_allowed
        # Maintained incrementally by add_node/remove_node/change_id.
        self._node_count = len(self._dependencies)

        logger.debug(
            "dependency_graph_initialized",
            node_count=self._node_count,
            cycle_allowed=self._cycle_allowed,
        )

    @classmethod
    def from_config(cls, config: "GraphConfig") -> "DependencyGraph":
        """Create an empty graph using the mode flags of a GraphConfig."""
        return cls(GraphSnapshot(cycle_allowed=config.cycle_allowed))

    def export(self) -> GraphSnapshot:
        """Export the current state for external persistence.

        Returns:
            A GraphSnapshot holding copies of both indexes and the cycle flag.
            It reflects the graph at the time of the call only.
        """
        return GraphSnapshot(
            dependencies={k: set(v) for k, v in self._dependencies.items()},
            dependers={k: set(v) for k, v in self._dependers.items()},
            cycle_allowed=self._cycle_allowed,
        )

    # Membership

    @property
    def cycle_allowed(self) -> bool:
        return self._cycle_allowed

    def get_number_of_nodes(self) -> int:
        return self._node_count

    def has_nodes(self) -> bool:
        return self.get_number_of_nodes() > 0

    def is_node(self, node_id: str) -> bool:
        return node_id in self._dependencies

    def has_dependencies(self, node_id: str) -> bool:
        return self.is_node(node_id) and bool(self._dependencies[node_id])

    def has_dependers(self, node_id: str) -> bool:
        return self.is_node(node_id) and bool(self._dependers.get(node_id))

    def nodes(self) -> Iterator[str]:
        return iter(self._dependencies)

    # Relationship queries

    def depends_on(self, n1: str, n2: str) -> bool:
        """Check whether ``n1`` directly depends on ``n2``."""
        if not self.has_dependencies(n1) or not self.has_dependers(n2):
            return False
        return n2 in self._dependencies[n1]

    def depended_by(self, n1: str, n2: str) -> bool:
        """Check whether ``n1`` is directly depended on by ``n2``."""
        if not self.has_dependencies(n2) or not self.has_dependers(n1):
            return False
        return n2 in self._dependers[n1]

    def get_dependencies(self, node_id: str) -> frozenset[str]:
        """Get the IDs a node depends on.

        An unknown node and a node without dependencies both yield an empty
        frozenset. Use is_node() when the distinction matters.
        """
        if not self.has_dependencies(node_id):
            return _EMPTY
        return frozenset(self._dependencies[node_id])

    def get_dependers(self, node_id: str) -> frozenset[str]:
        """Get the IDs that depend on a node.

        An unknown node and a node without dependers both yield an empty
        frozenset. Use is_node() when the distinction matters.
        """
        if not self.has_dependers(node_id):
            return _EMPTY
        return frozenset(self._dependers[node_id])

    # Node mutation

    def add_node(
        self,
        node_id: str,
        dependencies: Iterable[str] | Mapping[str, Any] | None = None,
    ) -> AddNodeResult:
        """Add a node, or replace the dependencies of an existing one.

        Args:
            node_id: ID of the node
            dependencies: IDs the node depends on, as any iterable of IDs or
                as a mapping whose keys are IDs. Duplicates collapse.

        Returns:
            ADDED for a new node, UPDATED for an existing one, FAILED if the
            input was malformed. FAILED leaves the graph unchanged.

        Example:
            >>> graph = DependencyGraph()
            >>> graph.add_node("n1").value
            'ADDED'
            >>> graph.add_node("n1", {"n0"}).value
            'UPDATED'
        """
        try:
            if not isinstance(node_id, str):
                msg = f"Node IDs must be strings, got {node_id!r}"
                raise TypeError(msg)
            new_dependencies = _as_id_set(dependencies)
            existed = self.is_node(node_id)
        except (TypeError, ValueError):
            logger.exception("add_node_failed", node_id=repr(node_id))
            return AddNodeResult.FAILED

        if existed:
            self._install_dependencies(node_id, new_dependencies)
            logger.debug(
                "node_updated",
                node_id=node_id,
                dependency_count=len(new_dependencies),
            )
            return AddNodeResult.UPDATED

        self._dependencies[node_id] = set()
        self._dependers.setdefault(node_id, set())
        self._install_dependencies(node_id, new_dependencies)
        self._node_count += 1

        logger.debug(
            "node_added",
            node_id=node_id,
            dependency_count=len(new_dependencies),
            node_count=self._node_count,
        )
        return AddNodeResult.ADDED

    def remove_node(self, node_id: str) -> RemovedNode | None:
        """Remove a node and sever every edge that references it.

        Args:
            node_id: ID of the node to remove

        Returns:
            The removed node's dependency and depender IDs, so the caller can
            re-validate the affected nodes, or None if it was not a node.
        """
        if not self.is_node(node_id):
            return None

        saved_dependencies = list(self._dependencies[node_id])
        saved_dependers = list(self._dependers.get(node_id, ()))

        for dep in saved_dependencies:
            if self.is_node(dep) and dep in self._dependers:
                self._dependers[dep].discard(node_id)

        for depender in saved_dependers:
            if self.is_node(depender):
                self._dependencies[depender].discard(node_id)

        del self._dependencies[node_id]
        self._dependers.pop(node_id, None)
        self._node_count -= 1

        logger.debug(
            "node_removed",
            node_id=node_id,
            dependency_count=len(saved_dependencies),
            depender_count=len(saved_dependers),
            node_count=self._node_count,
        )
        return RemovedNode(dependencies=saved_dependencies, dependers=saved_dependers)

    def change_id(self, old_id: str, new_id: str) -> bool:
        """Rename a node, rewriting every adjacency set that references it.

        Forward-only edges to ``old_id`` are rewritten too and stay
        forward-only.

        Args:
            old_id: Current ID of the node
            new_id: ID to move the node to

        Returns:
            True if renamed, False if ``old_id`` is not a node, ``new_id``
            already is one, or ``new_id`` is not a string.
        """
        if not isinstance(new_id, str) or not self.is_node(old_id) or self.is_node(new_id):
            logger.debug("change_id_skipped", old_id=old_id, new_id=new_id)
            return False

        forward = self._dependencies.pop(old_id)
        reverse = self._dependers.pop(old_id, set())
        # Self-edges move with the node.
        for adjacency in (forward, reverse):
            if old_id in adjacency:
                adjacency.discard(old_id)
                adjacency.add(new_id)
        self._dependencies[new_id] = forward
        self._dependers[new_id] = reverse

        for dep in forward:
            if dep in self._dependers and old_id in self._dependers[dep]:
                self._dependers[dep].discard(old_id)
                self._dependers[dep].add(new_id)

        # Scan the whole forward index: edges installed before old_id was
        # registered are not in its reverse entry.
        for deps in self._dependencies.values():
            if old_id in deps:
                deps.discard(old_id)
                deps.add(new_id)

        logger.debug("node_renamed", old_id=old_id, new_id=new_id)
        return True

    # Edge mutation

    def update_dependencies(
        self,
        node_id: str,
        dependencies: Iterable[str] | Mapping[str, Any],
    ) -> bool:
        """Replace the full dependency set of an existing node.

        Targets that are not registered nodes are kept in the forward set but
        are not mirrored in the reverse index.

        Args:
            node_id: ID of the node to update
            dependencies: New IDs the node depends on

        Returns:
            True if updated, False if ``node_id`` is not a node

        Raises:
            TypeError: If ``dependencies`` is a string or not an iterable of IDs
        """
        if not self.is_node(node_id):
            return False

        new_dependencies = _as_id_set(dependencies)
        self._install_dependencies(node_id, new_dependencies)

        logger.debug(
            "dependencies_updated",
            node_id=node_id,
            dependency_count=len(new_dependencies),
        )
        return True

    def _install_dependencies(self, node_id: str, dependencies: set[str]) -> None:
        for previous in self._dependencies[node_id]:
            reverse = self._dependers.get(previous)
            if reverse is not None:
                reverse.discard(node_id)

        self._dependencies[node_id] = dependencies
        for dep in dependencies:
            if self.is_node(dep):
                self._dependers.setdefault(dep, set()).add(node_id)

    def add_dependency(self, dependent: str, dependency: str) -> bool:
        """Add the edge ``dependent -> dependency``.

        Returns:
            True if the edge is present afterwards, False if either ID is
            empty or not a node
        """
        if not dependent or not dependency:
            return False
        if not self.is_node(dependent) or not self.is_node(dependency):
            return False

        self._dependencies[dependent].add(dependency)
        self._dependers.setdefault(dependency, set()).add(dependent)
        logger.debug("dependency_added", dependent=dependent, dependency=dependency)
        return True

    def add_dependencies(self, dependent: str, dependencies: Iterable[str]) -> None:
        for dependency in dependencies:
            self.add_dependency(dependent, dependency)

    def remove_dependency(self, dependent: str, dependency: str) -> bool:
        """Remove the edge ``dependent -> dependency`` from both indexes.

        Returns:
            True if both IDs are nodes (whether or not the edge existed),
            False otherwise
        """
        if not self.is_node(dependent) or not self.is_node(dependency):
            return False

        self._dependencies[dependent].discard(dependency)
        if dependency in self._dependers:
            self._dependers[dependency].discard(dependent)
        logger.debug("dependency_removed", dependent=dependent, dependency=dependency)
        return True

    def remove_dependencies(self, dependent: str, dependencies: Iterable[str]) -> None:
        for dependency in dependencies:
            self.remove_dependency(dependent, dependency)

    # Cycle pre-check

    def will_make_dependency_cycle(self, existing_id: str, target_id: str) -> bool | None:
        """Check whether making ``existing_id`` depend on ``target_id`` closes a cycle.

        Walks depth-first from ``target_id``'s dependencies through their own
        dependencies, looking for ``existing_id``. The walk keeps no visited
        set, so the graph must already be acyclic or the call will not return.

        A request for a node to depend on itself is answered True up front:
        the walk alone would miss it, since it starts from the target's
        dependencies rather than the target.

        Args:
            existing_id: Node that would gain the dependency
            target_id: Node it would depend on

        Returns:
            True if ``existing_id`` is reachable from ``target_id`` (or the two
            are the same node), False otherwise. None when the graph allows
            cycles, in which case no check is performed.
        """
        if self._cycle_allowed:
            logger.debug(
                "cycle_check_skipped",
                existing_id=existing_id,
                target_id=target_id,
            )
            return None

        if existing_id == target_id:
            return True

        stack = list(self._dependencies.get(target_id, ()))
        while stack:
            current = stack.pop()
            if current == existing_id:
                logger.debug(
                    "dependency_cycle_predicted",
                    existing_id=existing_id,
                    target_id=target_id,
                )
                return True
            stack.extend(self._dependencies.get(current, ()))

        return False

    # Introspection

    def get_stats(self) -> dict[str, int | bool]:
        """Get statistics about the current graph state.

        Returns:
            Dictionary with:
                - total_nodes: Cached number of nodes
                - total_dependencies: Number of forward edges
                - cycle_allowed: Whether the cycle pre-check is disabled
        """
        stats: dict[str, int | bool] = {
            "total_nodes": self._node_count,
            "total_dependencies": sum(len(deps) for deps in self._dependencies.values()),
            "cycle_allowed": self._cycle_allowed,
        }

        logger.debug("graph_stats_retrieved", **stats)

        return stats

    def copy(self) -> "DependencyGraph":
        """Create an independent copy of the graph.

        Example:
            >>> graph = DependencyGraph()
            >>> graph.add_node("task-1").value
            'ADDED'
            >>> graph.copy().is_node("task-1")
            True
        """
        return DependencyGraph(self.export())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._dependencies

    def __len__(self) -> int:
        return self._node_count

    def __repr__(self) -> str:
        edges = sum(len(deps) for deps in self._dependencies.values())
        return f"DependencyGraph(nodes={self._node_count}, edges={edges})"
