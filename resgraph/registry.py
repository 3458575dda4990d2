"""
Resource registry: kind schemas plus the ordered resources of one run.
"""
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from resgraph.errors import ConfigError, DuplicateResource, UnknownResource, UnknownResourceKind
from resgraph.models.resource import Resource
from resgraph.models.schema import ResourceSchema
from resgraph.schemas import BUILTIN_SCHEMAS


class ResourceRegistry:
    def __init__(self, schemas: Optional[Mapping[str, ResourceSchema]] = None,
                 aliases: Optional[Mapping[str, str]] = None):
        self._schemas: Dict[str, ResourceSchema] = dict(
            BUILTIN_SCHEMAS if schemas is None else schemas
        )
        self._aliases: Dict[str, str] = {}
        for schema in self._schemas.values():
            for alias in schema.aliases:
                self._aliases[alias] = schema.kind
        for alias, kind in (aliases or {}).items():
            if kind not in self._schemas:
                raise ConfigError(f"alias '{alias}' points at unknown kind '{kind}'")
            self._aliases[alias] = kind
        # dicts keep insertion order, which diagnostics rely on
        self._resources: Dict[Tuple[str, str], Resource] = {}

    # ------------------------------------------------------------------ schemas
    def canonical_kind(self, kind: str) -> Optional[str]:
        if kind in self._schemas:
            return kind
        return self._aliases.get(kind)

    def schema_for(self, kind: str) -> ResourceSchema:
        canonical = self.canonical_kind(kind)
        if canonical is None or canonical not in self._schemas:
            raise KeyError(kind)
        return self._schemas[canonical]

    # ---------------------------------------------------------------- resources
    def register(self, kind: str, name: str, attributes: Optional[Dict[str, Any]] = None,
                 source_format: str = "python", source_file: str = "") -> Resource:
        canonical = self.canonical_kind(kind)
        if canonical is None:
            raise UnknownResourceKind(kind, name, source_file=source_file or None)
        key = (canonical, name)
        if key in self._resources:
            raise DuplicateResource(canonical, name, source_file=source_file or None)
        resource = Resource(
            kind=canonical,
            name=name,
            attributes=dict(attributes or {}),
            source_format=source_format,
            source_file=source_file,
            declared_type=kind,
        )
        self._resources[key] = resource
        return resource

    def lookup(self, kind: str, name: str) -> Resource:
        canonical = self.canonical_kind(kind) or kind
        try:
            return self._resources[(canonical, name)]
        except KeyError:
            raise UnknownResource(canonical, name) from None

    def all(self) -> Iterator[Resource]:
        """Iterate registered resources in insertion order. Each call starts over."""
        yield from self._resources.values()

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, key) -> bool:
        kind, name = key
        canonical = self.canonical_kind(kind) or kind
        return (canonical, name) in self._resources
