"""
Markdown + Mermaid validation report generator.
"""
import re
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List

from jinja2 import Environment

from resgraph import __version__
from resgraph.engine import ValidationResult
from resgraph.models.resource import Resource

_STATUS_EMOJI = {
    "valid": "✅",
    "invalid": "❌",
}

_STATUS_ASCII = {
    "valid": "[OK]",
    "invalid": "[FAIL]",
}

_KIND_SUBGRAPH = {
    "table": "Data",
    "bucket": "Data",
    "rest-api": "API",
    "route": "API",
    "method": "API",
    "integration": "API",
    "deployment": "API",
    "function": "Compute",
    "permission": "Compute",
    "role": "Identity",
    "policy": "Identity",
    "policy-attachment": "Identity",
    "load-balancer": "Networking",
}

_SUBGRAPH_ORDER = ["Networking", "API", "Compute", "Data", "Identity", "Other"]


def _sanitize_node_id(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


def _resource_subgraph(r: Resource) -> str:
    return _KIND_SUBGRAPH.get(r.kind, "Other")


def _node_shape(r: Resource) -> str:
    """Return a Mermaid node definition string (without ID)."""
    label = r.qualified_name
    sg = _resource_subgraph(r)
    if sg == "Data":
        return f"[({label})]"
    if sg == "Networking":
        return f"{{{label}}}"
    if sg == "Identity":
        return f"[/{label}/]"
    return f"[{label}]"


def build_mermaid(result: ValidationResult) -> str:
    subgraphs: Dict[str, List[Resource]] = defaultdict(list)
    for r in result.resources:
        subgraphs[_resource_subgraph(r)].append(r)

    lines = ["flowchart LR"]
    for sg_name in _SUBGRAPH_ORDER:
        sg_resources = subgraphs.get(sg_name, [])
        if not sg_resources:
            continue
        lines.append(f"    subgraph {sg_name}")
        for r in sg_resources:
            lines.append(f"        {_sanitize_node_id(r.qualified_name)}{_node_shape(r)}")
        lines.append("    end")

    added_edges = set()
    for e in result.edges:
        src_id = _sanitize_node_id(e.source)
        dst_id = _sanitize_node_id(e.target)
        label = e.reference.attribute or e.attribute
        edge_key = (src_id, dst_id, label)
        if edge_key not in added_edges:
            added_edges.add(edge_key)
            lines.append(f"    {src_id} -->|{label}| {dst_id}")

    if result.diagnostic and result.diagnostic.path:
        for node in result.diagnostic.path:
            lines.append(f"    style {_sanitize_node_id(node)} fill:#ff4444,color:#fff")

    return "\n".join(lines)


def build_dot(result: ValidationResult) -> str:
    lines = ["digraph resources {", "    rankdir=LR;"]
    for r in result.resources:
        lines.append(f'    "{r.qualified_name}";')
    for e in result.edges:
        label = e.reference.attribute or e.attribute
        lines.append(f'    "{e.source}" -> "{e.target}" [label="{label}"];')
    lines.append("}")
    return "\n".join(lines)


_TEMPLATE = """\
# Resource Graph Report

**Generated:** {{ generated }}
**Source:** {{ source }}
**Tool:** resgraph v{{ version }}
{% if provider %}**Provider:** {% for k, v in provider.items() %}{{ k }}=`{{ v }}`{% if not loop.last %}, {% endif %}{% endfor %}
{% endif %}
---

## Summary

{{ status_icon }} **{{ status | upper }}**: {{ resource_count }} resources across {{ formats }}, {{ edge_count }} references.
{% if diagnostic %}

## Diagnostic

| Error | Resource | Attribute |
|-------|----------|-----------|
| `{{ diagnostic.error }}` | `{{ diagnostic.resource or "-" }}` | `{{ diagnostic.attribute or "-" }}` |

{{ diagnostic.message }}
{% if diagnostic.path %}
**Cycle:** {{ diagnostic.path | join(" → ") }} → {{ diagnostic.path[0] }}
{% endif %}{% if diagnostic.source_file %}
**File:** `{{ diagnostic.source_file }}`
{% endif %}{% endif %}

---

## Resource Inventory

| # | Resource | Kind | Declared As | Format |
|---|----------|------|-------------|--------|
{% for r in resources %}| {{ loop.index }} | `{{ r.name }}` | `{{ r.kind }}` | `{{ r.declared_type or r.kind }}` | {{ r.source_format }} |
{% endfor %}
{% if order %}
---

## Create Order

{% for r in order %}{{ loop.index }}. `{{ r.qualified_name }}`
{% endfor %}
Destroy in reverse order.
{% endif %}{% if edges %}
---

## References

| From | Attribute | To | Output |
|------|-----------|----|--------|
{% for e in edges %}| `{{ e.source }}` | `{{ e.attribute }}` | `{{ e.target }}` | {{ e.reference.attribute or "-" }} |
{% endfor %}{% endif %}
---

## Dependency Diagram

```mermaid
{{ mermaid }}
```
"""


def build_report(result: ValidationResult, source_path: str, ascii_mode: bool = False) -> str:
    formats_seen = sorted({r.source_format for r in result.resources if r.source_format})
    status = "valid" if result.ok else "invalid"
    icons = _STATUS_ASCII if ascii_mode else _STATUS_EMOJI

    env = Environment(autoescape=False)
    template = env.from_string(_TEMPLATE)

    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        source=source_path,
        version=__version__,
        provider=result.provider,
        status=status,
        status_icon=icons[status],
        resource_count=len(result.resources),
        formats=", ".join(formats_seen) if formats_seen else "unknown",
        edge_count=len(result.edges),
        diagnostic=result.diagnostic,
        resources=result.resources,
        order=result.order,
        edges=result.edges,
        mermaid=build_mermaid(result),
    )
