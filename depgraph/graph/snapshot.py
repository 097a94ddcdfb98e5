"""Snapshot model for loading and exporting dependency graph state.

A snapshot is the record a DependencyGraph is constructed from and the record
it exports. The host application owns persistence: it may dump the snapshot
to a file, a database row or a cache, and hand it back later.

Example:
    >>> snapshot = GraphSnapshot(
    ...     dependencies={"n1": set(), "n2": {"n1"}},
    ...     dependers={"n1": {"n2"}, "n2": set()},
    ... )
    >>> snapshot.model_dump(by_alias=True)["cycleAllowed"]
    False
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GraphSnapshot(BaseModel):
    """Point-in-time state of a dependency graph.

    Attributes:
        dependencies: Forward index, node ID -> IDs it depends on
        dependers: Reverse index, node ID -> IDs that depend on it
        cycle_allowed: Whether the cycle pre-check is disabled
    """

    model_config = ConfigDict(populate_by_name=True)

    dependencies: dict[str, set[str]] = Field(
        default_factory=dict,
        description="Forward adjacency index",
    )
    dependers: dict[str, set[str]] = Field(
        default_factory=dict,
        description="Reverse adjacency index",
    )
    cycle_allowed: bool = Field(
        default=False,
        alias="cycleAllowed",
        description="Skip the cycle pre-check",
    )

    @field_validator("dependencies", "dependers", mode="before")
    @classmethod
    def normalize_adjacency(cls, v: Any) -> Any:
        """Accept adjacency values written as ``{id: true}`` object maps.

        Args:
            v: Raw adjacency mapping

        Returns:
            The mapping with object-map values replaced by their keys
        """
        if not isinstance(v, Mapping):
            return v
        return {
            node_id: set(neighbors) if isinstance(neighbors, Mapping) else neighbors
            for node_id, neighbors in v.items()
        }


__all__ = ["GraphSnapshot"]
