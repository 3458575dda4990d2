"""
JSON validation report generator.
"""
import json
from datetime import datetime, timezone

from resgraph import __version__
from resgraph.engine import ValidationResult


def build_report(result: ValidationResult, source_path: str) -> str:
    report = {
        "meta": {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "source": source_path,
            "tool": "resgraph",
            "version": __version__,
        },
        "status": "valid" if result.ok else "invalid",
        "provider": result.provider,
        "order": [r.qualified_name for r in result.order],
        "destroy_order": [r.qualified_name for r in result.destroy_order],
        "resources": [
            {
                "name": r.name,
                "kind": r.kind,
                "declared_type": r.declared_type,
                "source_format": r.source_format,
                "source_file": r.source_file,
            }
            for r in result.resources
        ],
        "edges": [e.to_dict() for e in result.edges],
        "diagnostic": result.diagnostic.to_dict() if result.diagnostic else None,
    }
    return json.dumps(report, indent=2, default=str)
