from typing import Any, Dict, List, Tuple

import hcl2

from resgraph.errors import DeclarationError
from resgraph.models.resource import Declaration


def _unwrap(val: Any) -> Any:
    """
    python-hcl2 wraps single-element blocks in a list.
    Recursively unwrap single-element lists that contain dicts,
    and drop the parser's __meta__ keys.
    """
    if isinstance(val, list):
        if len(val) == 1 and isinstance(val[0], dict):
            return _unwrap(val[0])
        return [_unwrap(v) for v in val]
    if isinstance(val, dict):
        return {k: _unwrap(v) for k, v in val.items() if not k.startswith("__")}
    if isinstance(val, str):
        return _label(val)
    return val


def _label(text: str) -> str:
    # some python-hcl2 releases keep the quotes on string literals and labels
    return text[1:-1] if len(text) >= 2 and text[0] == text[-1] == '"' else text


def _iter_blocks(section: Any):
    """Yield (label, body) pairs from a hcl2 block section (list or dict form)."""
    if isinstance(section, dict):
        section = [section]
    for block in section or []:
        if not isinstance(block, dict):
            continue
        for label, body in block.items():
            if label.startswith("__"):
                continue
            yield _label(label), body


def _resource_declarations(resource_type: str, instances: Any, filepath: str) -> List[Declaration]:
    found: List[Declaration] = []
    for instance_map in instances if isinstance(instances, list) else [instances]:
        if not isinstance(instance_map, dict):
            continue
        for name, raw_props in instance_map.items():
            if name.startswith("__"):
                continue
            props = _unwrap(raw_props) if isinstance(raw_props, (dict, list)) else {}
            if not isinstance(props, dict):
                props = {}
            found.append(Declaration(
                kind=resource_type,
                name=_label(name),
                attributes=props,
                source_format="terraform",
                source_file=filepath,
            ))
    return found


def parse_file(filepath: str) -> Tuple[List[Declaration], Dict[str, Any]]:
    """Return the file's resource declarations (in file order) and provider settings."""
    try:
        with open(filepath) as fh:
            data = hcl2.load(fh)
    except Exception as exc:
        # python-hcl2 surfaces lark errors of several unrelated types
        raise DeclarationError(filepath, f"cannot parse HCL: {exc}") from exc

    declarations: List[Declaration] = []
    for resource_type, instances in _iter_blocks(data.get("resource", [])):
        declarations.extend(_resource_declarations(resource_type, instances, filepath))

    provider: Dict[str, Any] = {}
    for provider_name, body in _iter_blocks(data.get("provider", [])):
        settings = _unwrap(body)
        if isinstance(settings, dict):
            provider.setdefault("name", provider_name)
            provider.update(settings)

    return declarations, provider
