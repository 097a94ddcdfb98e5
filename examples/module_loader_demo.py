"""Demonstration of a module loader using DependencyGraph.

This example registers modules, rejects a dependency that would close a
cycle, reacts to a module being unloaded, and prints a validation report
and a Mermaid diagram.
"""

import json

from depgraph.graph import AddNodeResult, DependencyGraph, GraphValidator
from depgraph.log_config import bind_context, clear_context, configure_logging, get_logger

MODULES = {
    "core": [],
    "net": ["core"],
    "storage": ["core"],
    "api": ["net", "storage"],
}


def register_modules(graph: DependencyGraph) -> None:
    logger = get_logger(__name__)

    for module, requires in MODULES.items():
        result = graph.add_node(module, requires)
        if result is AddNodeResult.FAILED:
            logger.error("module_rejected", module=module)
        else:
            logger.info("module_registered", module=module, result=result.value)


def request_dependency(graph: DependencyGraph, dependent: str, dependency: str) -> bool:
    logger = get_logger(__name__)

    if graph.will_make_dependency_cycle(dependent, dependency):
        logger.warning("dependency_rejected", dependent=dependent, dependency=dependency)
        return False

    return graph.add_dependency(dependent, dependency)


def main() -> None:
    configure_logging(level="INFO", json_logs=False)
    bind_context(loader="demo")
    logger = get_logger(__name__)

    graph = DependencyGraph()
    register_modules(graph)

    # core -> api would close core <- net <- api
    request_dependency(graph, "core", "api")

    removed = graph.remove_node("storage")
    if removed is not None:
        logger.info("module_unloaded", module="storage", revalidate=removed.dependers)

    validator = GraphValidator()
    print(validator.validate(graph).summary())
    print(validator.generate_visualization(graph, "mermaid"))
    print(json.dumps(graph.export().model_dump(mode="json", by_alias=True), indent=2))

    clear_context()


if __name__ == "__main__":
    main()
