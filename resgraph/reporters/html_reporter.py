"""
HTML + Mermaid dependency graph report generator.
"""
from datetime import datetime, timezone

from jinja2 import Environment

from resgraph import __version__
from resgraph.engine import ValidationResult
from resgraph.reporters import markdown

_HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Resource Graph Report - resgraph</title>
    <script src="https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js"></script>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 1200px; margin: 0 auto; padding: 2rem; background: #f9f9f9; }
        header { border-bottom: 2px solid #ddd; margin-bottom: 2rem; padding-bottom: 1rem; }
        .meta { color: #666; font-size: 0.9rem; }
        .status { display: inline-block; font-weight: bold; padding: 0.3rem 0.8rem; border-radius: 4px; }
        .status-valid { background: #e8f5e9; color: #2e7d32; }
        .status-invalid { background: #ffebee; color: #c62828; }
        .diagnostic { background: white; border-left: 5px solid #f44336; padding: 1rem; margin: 1rem 0; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .mermaid-container { background: white; padding: 2rem; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); margin-bottom: 2rem; overflow-x: auto; }
        table { width: 100%; border-collapse: collapse; background: white; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        th, td { padding: 0.6rem 1rem; text-align: left; border-bottom: 1px solid #eee; }
        th { background: #f5f5f5; }
        code { font-family: monospace; }
    </style>
</head>
<body>
    <header>
        <h1>Resource Graph Report</h1>
        <div class="meta">Generated: {{ generated }} | Source: {{ source }} | resgraph v{{ version }}</div>
    </header>

    <span class="status status-{{ status }}">{{ status | upper }}</span>
    <p>{{ resources | length }} resources, {{ edges | length }} references.</p>

    {% if diagnostic %}
    <div class="diagnostic">
        <strong>{{ diagnostic.error }}</strong>{% if diagnostic.resource %} in <code>{{ diagnostic.resource }}</code>{% endif %}
        <div>{{ diagnostic.message }}</div>
        {% if diagnostic.path %}<div>Cycle: {{ diagnostic.path | join(" → ") }}</div>{% endif %}
    </div>
    {% endif %}

    <h2>Dependency Diagram</h2>
    <div class="mermaid-container">
        <div class="mermaid">
{{ mermaid }}
        </div>
    </div>

    {% if order %}
    <h2>Create Order</h2>
    <table>
        <thead><tr><th>#</th><th>Resource</th><th>Declared As</th><th>File</th></tr></thead>
        <tbody>
            {% for r in order %}
            <tr><td>{{ loop.index }}</td><td><code>{{ r.qualified_name }}</code></td><td>{{ r.declared_type }}</td><td>{{ r.source_file }}</td></tr>
            {% endfor %}
        </tbody>
    </table>
    {% endif %}

    <script>
        mermaid.initialize({ startOnLoad: true, theme: 'neutral', securityLevel: 'loose' });
    </script>
</body>
</html>
"""


def build_report(result: ValidationResult, source_path: str) -> str:
    env = Environment(autoescape=True)
    template = env.from_string(_HTML_TEMPLATE)

    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        source=source_path,
        version=__version__,
        status="valid" if result.ok else "invalid",
        diagnostic=result.diagnostic,
        resources=result.resources,
        edges=result.edges,
        order=result.order,
        mermaid=markdown.build_mermaid(result),
    )
