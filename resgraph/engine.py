from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from resgraph.errors import ValidationError
from resgraph.models.diagnostic import Diagnostic
from resgraph.models.resource import Declaration, Edge, Resource
from resgraph.models.schema import ResourceSchema
from resgraph.registry import ResourceRegistry
from resgraph.resolver import ReferenceResolver
from resgraph.validator import GraphValidator


@dataclass
class ValidationResult:
    resources: List[Resource] = field(default_factory=list)
    order: List[Resource] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    provider: Dict[str, Any] = field(default_factory=dict)
    diagnostic: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None

    @property
    def destroy_order(self) -> List[Resource]:
        return list(reversed(self.order))

    @property
    def order_names(self) -> List[str]:
        return [r.qualified_name for r in self.order]


def _as_declaration(item: Any) -> Declaration:
    if isinstance(item, Declaration):
        return item
    if isinstance(item, Resource):
        return Declaration(item.declared_type or item.kind, item.name, item.attributes,
                           item.source_format, item.source_file)
    kind, name, attributes = item
    return Declaration(kind, name, attributes)


def run(
    declarations: Iterable[Any],
    schemas: Optional[Mapping[str, ResourceSchema]] = None,
    aliases: Optional[Mapping[str, str]] = None,
    provider: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """
    Register, resolve and validate one declaration set.
    Raises the first ValidationError encountered.
    """
    registry = ResourceRegistry(schemas, aliases)
    for item in declarations:
        d = _as_declaration(item)
        registry.register(d.kind, d.name, d.attributes,
                          source_format=d.source_format, source_file=d.source_file)

    graph = ReferenceResolver(registry).resolve_all()
    order = GraphValidator(registry).validate(graph)

    return ValidationResult(
        resources=list(registry.all()),
        order=order,
        edges=graph.edges,
        provider=dict(provider or {}),
    )


def check(
    declarations: Iterable[Any],
    schemas: Optional[Mapping[str, ResourceSchema]] = None,
    aliases: Optional[Mapping[str, str]] = None,
    provider: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """Like run(), but reports the first failure as a Diagnostic."""
    declarations = list(declarations)
    try:
        return run(declarations, schemas, aliases, provider)
    except ValidationError as exc:
        resources = [
            Resource(kind=d.kind, name=d.name, attributes=d.attributes,
                     source_format=d.source_format, source_file=d.source_file,
                     declared_type=d.kind)
            for d in map(_as_declaration, declarations)
        ]
        return ValidationResult(
            resources=resources,
            provider=dict(provider or {}),
            diagnostic=exc.to_diagnostic(),
        )
