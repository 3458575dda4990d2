import json
import os
import subprocess
import sys

from click.testing import CliRunner

from resgraph.cli import cli

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


def test_module_execution():
    """Test that 'python -m resgraph' works."""
    result = subprocess.run(
        [sys.executable, "-m", "resgraph", "--help"],
        capture_output=True,
        text=True
    )
    assert result.returncode == 0
    assert "resgraph" in result.stdout


def test_validate_valid_json(tmp_path):
    out = tmp_path / "report.json"
    result = CliRunner().invoke(
        cli, ["validate", os.path.join(FIXTURES, "product_stack.yaml"), "--format", "json", "-o", str(out)]
    )
    assert result.exit_code == 0
    report = json.loads(out.read_text())
    assert report["status"] == "valid"
    assert report["order"][-1] == "function.CreateProductHandler"
    assert report["destroy_order"][0] == "function.CreateProductHandler"
    assert report["diagnostic"] is None
    assert report["provider"] == {"region": "eu-west-1"}


def test_validate_cycle_exits_1(tmp_path):
    out = tmp_path / "report.json"
    result = CliRunner().invoke(
        cli, ["validate", os.path.join(FIXTURES, "cycle.json"), "--format", "json", "-o", str(out)]
    )
    assert result.exit_code == 1
    report = json.loads(out.read_text())
    assert report["status"] == "invalid"
    assert report["diagnostic"]["error"] == "CyclicDependency"
    assert report["diagnostic"]["path"] == ["role.a", "policy.b"]


def test_validate_parse_error_exits_2(tmp_path):
    bad = tmp_path / "bad.tf"
    bad.write_text("this is not valid hcl {{{")
    result = CliRunner().invoke(cli, ["validate", str(bad)])
    assert result.exit_code == 2


def test_validate_sarif_has_one_result(tmp_path):
    out = tmp_path / "report.sarif"
    CliRunner().invoke(
        cli, ["validate", os.path.join(FIXTURES, "cycle.json"), "--format", "sarif", "-o", str(out)]
    )
    sarif = json.loads(out.read_text())
    results = sarif["runs"][0]["results"]
    assert len(results) == 1
    assert results[0]["ruleId"] == "RG-CyclicDependency"


def test_validate_html():
    result = CliRunner().invoke(cli, ["validate", os.path.join(FIXTURES, "product_stack.yaml"), "--format", "html"])
    assert result.exit_code == 0
    assert "<html" in result.stdout
    assert "function.CreateProductHandler" in result.stdout


def test_markdown_ascii_mode():
    runner = CliRunner()
    path = os.path.join(FIXTURES, "product_stack.yaml")
    emoji = runner.invoke(cli, ["validate", path])
    assert "✅ **VALID**" in emoji.stdout
    ascii_report = runner.invoke(cli, ["validate", path, "--ascii"])
    assert "[OK] **VALID**" in ascii_report.stdout
    assert "✅" not in ascii_report.stdout


def test_markdown_encoding_and_newline(tmp_path):
    """Test that the Markdown report is written with UTF-8 and LF."""
    output_file = tmp_path / "report.md"
    result = CliRunner().invoke(
        cli, ["validate", os.path.join(FIXTURES, "product_api.tf"), "--output", str(output_file)]
    )
    assert result.exit_code == 0

    with open(output_file, "rb") as f:
        content = f.read()
        assert b"\r\n" not in content
        assert b"\n" in content

    text = content.decode("utf-8")
    assert "## Create Order" in text
    assert "```mermaid" in text


def test_order_and_destroy():
    runner = CliRunner()
    path = os.path.join(FIXTURES, "product_stack.yaml")
    create = runner.invoke(cli, ["order", path])
    destroy = runner.invoke(cli, ["order", path, "--destroy"])
    assert create.exit_code == 0
    lines = create.stdout.split()
    assert lines == [
        "table.product_table", "role.ProductLambdaRole", "function.CreateProductHandler",
    ]
    assert destroy.stdout.split() == list(reversed(lines))


def test_graph_dot():
    result = CliRunner().invoke(cli, ["graph", os.path.join(FIXTURES, "product_stack.yaml"), "--dot"])
    assert result.exit_code == 0
    assert '"function.CreateProductHandler" -> "role.ProductLambdaRole"' in result.stdout


def test_schemas_lists_kinds():
    result = CliRunner().invoke(cli, ["schemas"])
    assert result.exit_code == 0
    assert "load-balancer" in result.stdout


def test_bad_config_exits_2(tmp_path):
    cfg = tmp_path / "resgraph.yaml"
    cfg.write_text("schemas: [not, a, mapping]\n")
    result = CliRunner().invoke(
        cli, ["validate", os.path.join(FIXTURES, "product_stack.yaml"), "--config", str(cfg)]
    )
    assert result.exit_code == 2


def test_order_from_mixed_directory(tmp_path):
    import shutil
    shutil.copy(os.path.join(FIXTURES, "product_api.tf"), tmp_path / "main.tf")
    (tmp_path / "notes.txt").write_text("ignored")
    result = CliRunner().invoke(cli, ["order", str(tmp_path)])
    assert result.exit_code == 0
    assert len(result.stdout.split()) == 12
