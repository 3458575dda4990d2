"""
Project configuration, read from ``resgraph.yaml`` in the working directory
or from an explicit ``--config`` path.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from resgraph.errors import ConfigError
from resgraph.models.schema import ResourceSchema, ValueKind
from resgraph.schemas import merge_schemas

DEFAULT_CONFIG_FILE = "resgraph.yaml"


@dataclass
class Config:
    schemas: Dict[str, ResourceSchema] = field(default_factory=merge_schemas)
    aliases: Dict[str, str] = field(default_factory=dict)
    provider: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def provider_for(self, declared: Dict[str, Any]) -> Dict[str, Any]:
        """Declared provider settings win over configured defaults."""
        merged = dict(self.provider)
        merged.update(declared)
        return merged


def _value_kinds(kind: str, section: str, raw: Any) -> Dict[str, ValueKind]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"schemas.{kind}.{section} must be a mapping")
    out = {}
    for attr, value in raw.items():
        try:
            out[str(attr)] = ValueKind(str(value))
        except ValueError:
            valid = ", ".join(v.value for v in ValueKind)
            raise ConfigError(
                f"schemas.{kind}.{section}.{attr}: unknown value kind '{value}' (expected one of {valid})"
            ) from None
    return out


def _parse_schema(kind: str, raw: Any) -> ResourceSchema:
    if not isinstance(raw, dict):
        raise ConfigError(f"schemas.{kind} must be a mapping")
    outputs = raw.get("outputs") or []
    aliases = raw.get("aliases") or []
    if not isinstance(outputs, list) or not isinstance(aliases, list):
        raise ConfigError(f"schemas.{kind}: 'outputs' and 'aliases' must be lists")
    return ResourceSchema(
        kind=kind,
        required=_value_kinds(kind, "required", raw.get("required")),
        optional=_value_kinds(kind, "optional", raw.get("optional")),
        outputs=frozenset(str(o) for o in outputs),
        aliases=tuple(str(a) for a in aliases),
    )


def from_dict(data: Any, source: Optional[str] = None) -> Config:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source or 'config'}: top level must be a mapping")

    raw_schemas = data.get("schemas") or {}
    if not isinstance(raw_schemas, dict):
        raise ConfigError("'schemas' must be a mapping")
    schemas = merge_schemas({str(k): _parse_schema(str(k), v) for k, v in raw_schemas.items()})

    aliases = {str(k): str(v) for k, v in (data.get("aliases") or {}).items()}
    for alias, kind in aliases.items():
        if kind not in schemas:
            raise ConfigError(f"alias '{alias}' points at unknown kind '{kind}'")

    provider = data.get("provider") or {}
    if not isinstance(provider, dict):
        raise ConfigError("'provider' must be a mapping")

    return Config(schemas=schemas, aliases=aliases, provider=dict(provider), source=source)


def load(path: Optional[str] = None) -> Config:
    """
    Load ``path``, or ``resgraph.yaml`` if it exists. A missing default file
    yields the built-in configuration; a missing explicit path is an error.
    """
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_FILE):
            return Config()
        path = DEFAULT_CONFIG_FILE

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc

    return from_dict(data, source=path)
