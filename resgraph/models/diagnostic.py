from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Diagnostic:
    error: str                        # exception class name, e.g. "CyclicDependency"
    message: str
    kind: Optional[str] = None
    name: Optional[str] = None
    attribute: Optional[str] = None
    path: List[str] = field(default_factory=list)
    source_file: Optional[str] = None
    target: Optional[str] = None      # unresolved reference of a DanglingReference

    @property
    def resource(self) -> Optional[str]:
        if self.kind and self.name:
            return f"{self.kind}.{self.name}"
        return None

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "message": self.message,
            "resource": self.resource,
            "attribute": self.attribute,
            "target": self.target,
            "path": list(self.path),
            "source_file": self.source_file,
        }
