"""
SARIF (Static Analysis Results Interchange Format) reporter.
Enables integration with GitHub Security Tab.
"""
import json
from typing import Dict

from resgraph import __version__
from resgraph.engine import ValidationResult

_RULES: Dict[str, str] = {
    "DuplicateResource": "A (kind, name) pair is declared more than once.",
    "UnknownResource": "A resource or resource kind is not known to the registry.",
    "UnknownResourceKind": "A resource uses a kind with no schema.",
    "DanglingReference": "A reference points at a missing resource or an output its kind does not expose.",
    "CyclicDependency": "Resources reference each other in a cycle.",
    "IncompleteResource": "A required attribute is missing or has the wrong value kind.",
}


def build_report(result: ValidationResult, source_path: str) -> str:
    sarif = {
        "$schema": "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "resgraph",
                        "semanticVersion": __version__,
                        "rules": [
                            {
                                "id": f"RG-{rule_id}",
                                "shortDescription": {"text": rule_id},
                                "fullDescription": {"text": text},
                            }
                            for rule_id, text in _RULES.items()
                        ],
                    }
                },
                "results": [],
            }
        ],
    }

    d = result.diagnostic
    if d is not None:
        sarif["runs"][0]["results"].append({
            "ruleId": f"RG-{d.error}",
            "message": {"text": d.message},
            "level": "error",
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": d.source_file or source_path},
                        "region": {"startLine": 1},
                    },
                    "logicalLocations": [
                        {"fullyQualifiedName": d.resource or "", "kind": "resource"}
                    ],
                }
            ],
            "properties": {"attribute": d.attribute, "target": d.target, "path": d.path},
        })

    return json.dumps(sarif, indent=2)
