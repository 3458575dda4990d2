import json
import os

import yaml

from resgraph.parsers.declaration import DeclarationLoader


def _is_declaration(doc) -> bool:
    return isinstance(doc, dict) and isinstance(doc.get("resources"), list)


def detect_format(filepath: str) -> str:
    """
    Return 'terraform', 'declaration', or 'unknown'.
    """
    _, ext = os.path.splitext(filepath.lower())

    if ext == ".tf":
        return "terraform"

    if ext == ".json":
        try:
            with open(filepath) as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            return "unknown"
        return "declaration" if _is_declaration(data) else "unknown"

    if ext in (".yaml", ".yml"):
        try:
            with open(filepath) as fh:
                doc = yaml.load(fh, Loader=DeclarationLoader)
        except (OSError, yaml.YAMLError):
            return "unknown"
        if _is_declaration(doc):
            return "declaration"

    return "unknown"
