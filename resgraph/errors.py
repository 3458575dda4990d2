"""
Exception hierarchy. Every validation error aborts the run it was raised in.
"""
from typing import List, Optional

from resgraph.models.diagnostic import Diagnostic


class ResgraphError(Exception):
    pass


class DeclarationError(ResgraphError):
    """An input file could not be read or parsed."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"{path}: {detail}")


class ConfigError(ResgraphError):
    pass


class ValidationError(ResgraphError):
    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        name: Optional[str] = None,
        attribute: Optional[str] = None,
        source_file: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.name = name
        self.attribute = attribute
        self.source_file = source_file

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            error=type(self).__name__,
            message=self.message,
            kind=self.kind,
            name=self.name,
            attribute=self.attribute,
            source_file=self.source_file,
        )


class DuplicateResource(ValidationError):
    def __init__(self, kind: str, name: str, source_file: Optional[str] = None):
        super().__init__(
            f"resource {kind}.{name} is declared more than once",
            kind=kind, name=name, source_file=source_file,
        )


class UnknownResource(ValidationError):
    def __init__(self, kind: str, name: str, message: Optional[str] = None):
        super().__init__(
            message or f"no resource {kind}.{name} is registered",
            kind=kind, name=name,
        )


class UnknownResourceKind(UnknownResource):
    def __init__(self, kind: str, name: str, source_file: Optional[str] = None):
        super().__init__(kind, name, f"resource {kind}.{name} has unknown kind '{kind}'")
        self.source_file = source_file


class DanglingReference(ValidationError):
    """
    ``kind``/``name``/``attribute`` locate the consuming declaration;
    ``target`` is the reference that failed to resolve.
    """

    def __init__(self, kind: str, name: str, attribute: str, target: str, detail: str,
                 source_file: Optional[str] = None):
        super().__init__(
            f"{kind}.{name}.{attribute} references {target}: {detail}",
            kind=kind, name=name, attribute=attribute, source_file=source_file,
        )
        self.target = target

    def to_diagnostic(self) -> Diagnostic:
        diag = super().to_diagnostic()
        diag.target = self.target
        return diag


class CyclicDependency(ValidationError):
    def __init__(self, path: List[str]):
        loop = " -> ".join(path + path[:1])
        first = path[0] if path else ""
        kind, _, name = first.partition(".")
        super().__init__(f"dependency cycle: {loop}", kind=kind or None, name=name or None)
        self.path = list(path)

    def to_diagnostic(self) -> Diagnostic:
        diag = super().to_diagnostic()
        diag.path = list(self.path)
        return diag


class IncompleteResource(ValidationError):
    def __init__(self, kind: str, name: str, attribute: str, reason: str, detail: str,
                 source_file: Optional[str] = None):
        super().__init__(
            f"{kind}.{name}: attribute '{attribute}' {detail}",
            kind=kind, name=name, attribute=attribute, source_file=source_file,
        )
        self.reason = reason   # "missing" or "mismatched"
