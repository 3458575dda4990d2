"""
Graph validation: cycle check, completeness check, then a deterministic
topological sort of the resources (dependencies first).
"""
import heapq
from typing import Any, Dict, List, Optional

from resgraph.errors import CyclicDependency, IncompleteResource
from resgraph.graph import DependencyGraph
from resgraph.models.resource import Reference, Resource
from resgraph.models.schema import ResourceSchema, ValueKind
from resgraph.registry import ResourceRegistry
from resgraph.schemas import has_expression, is_literal_arn, parse_reference

_WHITE, _GREY, _BLACK = 0, 1, 2


def _is_interpolation(val: Any) -> bool:
    return isinstance(val, str) and val.strip().startswith("${")


def _is_reference_value(val: Any) -> bool:
    if isinstance(val, Reference) or is_literal_arn(val):
        return True
    if isinstance(val, str):
        # any computed expression qualifies; its edges come from the paths inside it
        return _is_interpolation(val) or has_expression(val) or parse_reference(val) is not None
    if isinstance(val, list):
        return bool(val) and all(_is_reference_value(v) for v in val)
    return False


def matches_kind(val: Any, expected: ValueKind) -> bool:
    if expected == ValueKind.ANY:
        return True
    if expected == ValueKind.REFERENCE:
        return _is_reference_value(val)
    # Computed expressions stand in for any literal kind
    if _is_interpolation(val) or isinstance(val, Reference):
        return True
    if expected == ValueKind.STRING:
        return isinstance(val, str)
    if expected == ValueKind.NUMBER:
        return isinstance(val, (int, float)) and not isinstance(val, bool)
    if expected == ValueKind.BOOLEAN:
        return isinstance(val, bool)
    if expected == ValueKind.LIST:
        return isinstance(val, list)
    if expected == ValueKind.MAP:
        return isinstance(val, dict)
    return False


def find_cycle(graph: DependencyGraph) -> Optional[List[str]]:
    """
    Three-colour DFS in node order. Returns the first cycle found, as the
    path from the re-entered node to the node holding the back edge.
    """
    color: Dict[str, int] = {n: _WHITE for n in graph.nodes}
    stack: List[str] = []

    def visit(node: str) -> Optional[List[str]]:
        color[node] = _GREY
        stack.append(node)
        for dep in graph.dependencies(node):
            if color[dep] == _GREY:
                return stack[stack.index(dep):]
            if color[dep] == _WHITE:
                cycle = visit(dep)
                if cycle:
                    return cycle
        stack.pop()
        color[node] = _BLACK
        return None

    for node in graph.nodes:
        if color[node] == _WHITE:
            cycle = visit(node)
            if cycle:
                return list(cycle)
    return None


def check_resource(resource: Resource, schema: ResourceSchema) -> None:
    attrs = resource.attributes
    src = resource.source_file or None
    for attribute, expected in schema.required.items():
        if attrs.get(attribute) is None:
            raise IncompleteResource(
                resource.kind, resource.name, attribute, "missing",
                "is required but not set", source_file=src,
            )
        if not matches_kind(attrs[attribute], expected):
            raise IncompleteResource(
                resource.kind, resource.name, attribute, "mismatched",
                f"must be a {expected.value}, got {attrs[attribute]!r}", source_file=src,
            )
    for attribute, val in attrs.items():
        if attribute in schema.required or val is None:
            continue
        expected = schema.attribute_kind(attribute)
        if expected is not None and not matches_kind(val, expected):
            raise IncompleteResource(
                resource.kind, resource.name, attribute, "mismatched",
                f"must be a {expected.value}, got {val!r}", source_file=src,
            )


def topological_order(graph: DependencyGraph) -> List[Resource]:
    """Kahn's algorithm; ties go to the earliest registered resource."""
    index = {n: i for i, n in enumerate(graph.nodes)}
    pending = {n: len(graph.dependencies(n)) for n in graph.nodes}
    dependents: Dict[str, List[str]] = {n: [] for n in graph.nodes}
    for n in graph.nodes:
        for dep in graph.dependencies(n):
            dependents[dep].append(n)

    ready = [(index[n], n) for n, count in pending.items() if count == 0]
    heapq.heapify(ready)
    order: List[Resource] = []
    while ready:
        _, node = heapq.heappop(ready)
        order.append(graph.resource(node))
        for consumer in dependents[node]:
            pending[consumer] -= 1
            if pending[consumer] == 0:
                heapq.heappush(ready, (index[consumer], consumer))

    if len(order) != len(graph):
        # unreachable after find_cycle unless the graph changed
        raise CyclicDependency([n for n, count in pending.items() if count > 0])
    return order


class GraphValidator:
    def __init__(self, registry: ResourceRegistry):
        self.registry = registry

    def validate(self, graph: DependencyGraph) -> List[Resource]:
        cycle = find_cycle(graph)
        if cycle:
            raise CyclicDependency(cycle)

        for resource in graph.resources():
            check_resource(resource, self.registry.schema_for(resource.kind))

        return topological_order(graph)
