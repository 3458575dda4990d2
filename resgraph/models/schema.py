from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Tuple


class ValueKind(str, Enum):
    STRING    = "string"
    NUMBER    = "number"
    BOOLEAN   = "boolean"
    REFERENCE = "reference"
    LIST      = "list"
    MAP       = "map"
    ANY       = "any"


# Accepted on every kind regardless of schema
META_ATTRIBUTES = {
    "depends_on": ValueKind.REFERENCE,
    "count":      ValueKind.ANY,
    "for_each":   ValueKind.ANY,
    "lifecycle":  ValueKind.ANY,
    "provider":   ValueKind.ANY,
}


@dataclass(frozen=True)
class ResourceSchema:
    kind: str
    required: Mapping[str, ValueKind] = field(default_factory=dict)
    optional: Mapping[str, ValueKind] = field(default_factory=dict)
    outputs: FrozenSet[str] = frozenset()
    aliases: Tuple[str, ...] = ()

    def attribute_kind(self, attribute: str) -> Optional[ValueKind]:
        if attribute in self.required:
            return self.required[attribute]
        if attribute in self.optional:
            return self.optional[attribute]
        return META_ATTRIBUTES.get(attribute)

    def is_reference(self, attribute: str) -> bool:
        return self.attribute_kind(attribute) == ValueKind.REFERENCE

    def exposes(self, output: str) -> bool:
        return output in self.outputs
