"""
Reference resolution: turn reference-typed attribute values into graph edges.
"""
from typing import Any, Iterator, List, Optional, Tuple

from resgraph.errors import DanglingReference, UnknownResource
from resgraph.graph import DependencyGraph
from resgraph.models.resource import Edge, Reference, Resource
from resgraph.models.schema import ResourceSchema
from resgraph.registry import ResourceRegistry
from resgraph.schemas import find_references, is_external


def _explicit_refs(val: Any) -> Iterator[Reference]:
    """Recursively collect Reference objects from any literal value."""
    if isinstance(val, Reference):
        yield val
    elif isinstance(val, list):
        for item in val:
            yield from _explicit_refs(item)
    elif isinstance(val, dict):
        for v in val.values():
            yield from _explicit_refs(v)


def _typed_refs(val: Any) -> Iterator[Reference]:
    """Strings in a reference-typed attribute, alone or in a list."""
    if isinstance(val, str):
        yield from find_references(val)
    elif isinstance(val, list):
        for item in val:
            if isinstance(item, str):
                yield from find_references(item)


def attribute_refs(schema: ResourceSchema, attribute: str, value: Any) -> List[Reference]:
    refs = list(_explicit_refs(value))
    if schema.is_reference(attribute):
        refs.extend(_typed_refs(value))
    return [r for r in refs if not is_external(r)]


class ReferenceResolver:
    def __init__(self, registry: ResourceRegistry, graph: Optional[DependencyGraph] = None):
        self.registry = registry
        self.graph = graph if graph is not None else DependencyGraph(list(registry.all()))

    def _target(self, resource: Resource, attribute: str, reference: Reference) -> Resource:
        try:
            target = self.registry.lookup(reference.kind, reference.name)
        except UnknownResource:
            raise DanglingReference(
                resource.kind, resource.name, attribute, reference.target,
                f"no resource {reference.target} is declared",
                source_file=resource.source_file or None,
            ) from None

        if reference.attribute is not None:
            schema = self.registry.schema_for(target.kind)
            if not schema.exposes(reference.attribute):
                raise DanglingReference(
                    resource.kind, resource.name, attribute, str(reference),
                    f"kind '{target.kind}' exposes no output '{reference.attribute}' "
                    f"(outputs: {', '.join(sorted(schema.outputs)) or 'none'})",
                    source_file=resource.source_file or None,
                )
        return target

    def references(self, resource: Resource) -> List[Tuple[str, Reference]]:
        schema = self.registry.schema_for(resource.kind)
        found = []
        for attribute, value in resource.attributes.items():
            for r in attribute_refs(schema, attribute, value):
                found.append((attribute, r))
        return found

    def resolve(self, resource: Resource) -> List[Edge]:
        """Append one edge per reference in ``resource``; return the new edges."""
        added = []
        for attribute, reference in self.references(resource):
            target = self._target(resource, attribute, reference)
            edge = Edge(
                source=resource.qualified_name,
                attribute=attribute,
                target=target.qualified_name,
                reference=reference,
            )
            self.graph.add_edge(edge)
            added.append(edge)
        return added

    def resolve_all(self) -> DependencyGraph:
        for resource in self.registry.all():
            self.resolve(resource)
        return self.graph
