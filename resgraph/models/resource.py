from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Reference:
    kind: str                         # target kind, canonical or alias
    name: str                         # target logical name
    attribute: Optional[str] = None   # exposed output, e.g. "arn"

    @property
    def target(self) -> str:
        return f"{self.kind}.{self.name}"

    def __str__(self) -> str:
        if self.attribute:
            return f"{self.target}.{self.attribute}"
        return self.target


def ref(kind: str, name: str, attribute: Optional[str] = None) -> Reference:
    return Reference(kind=kind, name=name, attribute=attribute)


@dataclass
class Resource:
    kind: str              # canonical kind, e.g. "function"
    name: str              # logical name in the declaration
    attributes: Dict[str, Any] = field(default_factory=dict)
    source_format: str = ""      # "terraform", "declaration", "python"
    source_file: str = ""
    declared_type: str = ""      # type as written, e.g. "aws_lambda_function"

    @property
    def qualified_name(self) -> str:
        return f"{self.kind}.{self.name}"


@dataclass
class Edge:
    """A dependency of ``source`` (through ``attribute``) on ``reference``."""
    source: str              # qualified name of the consumer
    attribute: str
    target: str              # qualified name of the producer
    reference: Reference

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "attribute": self.attribute,
            "target": self.target,
            "output": self.reference.attribute,
        }


@dataclass
class Declaration:
    """One resource as written in the input, before registration."""
    kind: str
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    source_format: str = "python"
    source_file: str = ""
