"""
Native resource declarations in YAML or JSON:

    provider:
      region: eu-west-1
    resources:
      - kind: function
        name: CreateProductHandler
        attributes:
          role: !ref role.ProductLambdaRole.arn
          table: {ref: table.product_table.name}
"""
import json
import os
from typing import Any, Dict, List, Tuple

import yaml

from resgraph.errors import DeclarationError
from resgraph.models.resource import Declaration, Reference
from resgraph.schemas import parse_reference


class DeclarationLoader(yaml.SafeLoader):
    pass


def _ref_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    """Turn ``!ref kind.name.attr`` into {"ref": "kind.name.attr"}."""
    return {"ref": loader.construct_scalar(node)}


DeclarationLoader.add_constructor("!ref", _ref_constructor)


def _convert_refs(val: Any, filepath: str) -> Any:
    """Replace every {"ref": "..."} mapping with a Reference."""
    if isinstance(val, dict):
        if set(val) == {"ref"} and isinstance(val["ref"], str):
            r = parse_reference(val["ref"])
            if r is None:
                raise DeclarationError(filepath, f"malformed reference '{val['ref']}'")
            return Reference(r.kind, r.name, r.attribute)
        return {k: _convert_refs(v, filepath) for k, v in val.items()}
    if isinstance(val, list):
        return [_convert_refs(v, filepath) for v in val]
    return val


def load_document(filepath: str) -> Any:
    _, ext = os.path.splitext(filepath.lower())
    try:
        with open(filepath) as fh:
            if ext == ".json":
                return json.load(fh)
            return yaml.load(fh, Loader=DeclarationLoader)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise DeclarationError(filepath, f"cannot parse declaration: {exc}") from exc


def parse_document(doc: Any, filepath: str = "") -> Tuple[List[Declaration], Dict[str, Any]]:
    if not isinstance(doc, dict) or not isinstance(doc.get("resources"), list):
        raise DeclarationError(filepath, "expected a mapping with a 'resources' list")

    provider = doc.get("provider") or {}
    if not isinstance(provider, dict):
        raise DeclarationError(filepath, "'provider' must be a mapping")

    declarations: List[Declaration] = []
    for i, entry in enumerate(doc["resources"]):
        if not isinstance(entry, dict) or not entry.get("kind") or not entry.get("name"):
            raise DeclarationError(filepath, f"resources[{i}] needs 'kind' and 'name'")
        attributes = entry.get("attributes") or {}
        if not isinstance(attributes, dict):
            raise DeclarationError(filepath, f"resources[{i}].attributes must be a mapping")
        declarations.append(Declaration(
            kind=str(entry["kind"]),
            name=str(entry["name"]),
            attributes=_convert_refs(attributes, filepath),
            source_format="declaration",
            source_file=filepath,
        ))
    return declarations, dict(provider)


def parse_file(filepath: str) -> Tuple[List[Declaration], Dict[str, Any]]:
    return parse_document(load_document(filepath), filepath)
