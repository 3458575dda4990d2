"""
Parser tests — verify correct declaration extraction from each fixture.
"""
import os

import pytest

from resgraph.errors import ConfigError, DeclarationError
from resgraph.models.resource import Reference

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


# --------------------------------------------------------- Terraform
class TestTerraformParser:
    def setup_method(self):
        from resgraph.parsers import terraform
        self.parser = terraform

    def _parse(self):
        return self.parser.parse_file(os.path.join(FIXTURES, "product_api.tf"))

    def test_resource_count(self):
        declarations, _ = self._parse()
        assert len(declarations) == 12

    def test_declaration_order_preserved(self):
        declarations, _ = self._parse()
        assert declarations[0].name == "product_table"
        assert declarations[-1].name == "assets"

    def test_source_format_is_terraform(self):
        declarations, _ = self._parse()
        for d in declarations:
            assert d.source_format == "terraform"
            assert d.source_file.endswith("product_api.tf")

    def test_provider_settings(self):
        _, provider = self._parse()
        assert provider["name"] == "aws"
        assert provider["region"] == "us-east-1"

    def test_references_kept_as_strings(self):
        declarations, _ = self._parse()
        fn = next(d for d in declarations if d.kind == "aws_lambda_function")
        assert "aws_iam_role.lambda_role.arn" in fn.attributes["role"]

    def test_single_blocks_unwrapped(self):
        declarations, _ = self._parse()
        table = next(d for d in declarations if d.kind == "aws_dynamodb_table")
        assert isinstance(table.attributes["attribute"], dict)
        assert table.attributes["attribute"]["name"] == "product_id"

    def test_fixture_validates(self):
        from resgraph import engine
        declarations, provider = self._parse()
        result = engine.run(declarations, provider=provider)
        order = result.order_names
        assert len(order) == 12
        assert order.index("role.lambda_role") < order.index("function.create_product")
        assert order.index("function.create_product") < order.index("integration.post_product")
        assert order.index("integration.post_product") < order.index("deployment.product")
        assert order.index("rest-api.product_api") < order.index("permission.apigw")
        assert result.provider["region"] == "us-east-1"

    def test_invalid_file_raises(self, tmp_path):
        bad = tmp_path / "bad.tf"
        bad.write_text("this is not valid hcl {{{")
        with pytest.raises(DeclarationError) as exc:
            self.parser.parse_file(str(bad))
        assert exc.value.path == str(bad)

    def test_missing_resource_in_tf(self, tmp_path):
        from resgraph import engine
        from resgraph.errors import DanglingReference
        tf = tmp_path / "main.tf"
        tf.write_text(
            'resource "aws_lambda_function" "fn" {\n'
            '  role = aws_iam_role.missing.arn\n'
            '}\n'
        )
        declarations, _ = self.parser.parse_file(str(tf))
        with pytest.raises(DanglingReference) as exc:
            engine.run(declarations)
        assert exc.value.target == "aws_iam_role.missing"

    def test_embedded_and_conditional_references_in_tf(self, tmp_path):
        from resgraph import engine
        tf = tmp_path / "main.tf"
        tf.write_text(
            'resource "aws_api_gateway_rest_api" "api" {\n'
            '  name = "ProductAPI"\n'
            '}\n'
            'resource "aws_api_gateway_integration" "i" {\n'
            '  rest_api_id = aws_api_gateway_rest_api.api.id\n'
            '  resource_id = aws_api_gateway_rest_api.api.root_resource_id\n'
            '  http_method = "POST"\n'
            '  type        = "AWS_PROXY"\n'
            '  uri         = "arn:aws:apigateway:${var.region}:lambda:path/2015-03-31/functions/'
            '${aws_lambda_function.f.arn}/invocations"\n'
            '}\n'
            'resource "aws_iam_role" "r" {\n'
            '  name = "lambda"\n'
            '}\n'
            'resource "aws_lambda_function" "f" {\n'
            '  role = var.enabled ? aws_iam_role.r.arn : null\n'
            '}\n'
        )
        declarations, _ = self.parser.parse_file(str(tf))
        result = engine.run(declarations)
        assert ("integration.i", "function.f") in {(e.source, e.target) for e in result.edges}
        assert ("function.f", "role.r") in {(e.source, e.target) for e in result.edges}
        assert result.order_names == ["rest-api.api", "role.r", "function.f", "integration.i"]


# --------------------------------------------------------- Native declarations
class TestDeclarationParser:
    def setup_method(self):
        from resgraph.parsers import declaration
        self.parser = declaration

    def test_yaml_fixture(self):
        declarations, provider = self.parser.parse_file(os.path.join(FIXTURES, "product_stack.yaml"))
        assert [d.name for d in declarations] == [
            "product_table", "ProductLambdaRole", "CreateProductHandler",
        ]
        assert provider == {"region": "eu-west-1"}

    def test_ref_tag_becomes_reference(self):
        declarations, _ = self.parser.parse_file(os.path.join(FIXTURES, "product_stack.yaml"))
        fn = declarations[-1]
        assert fn.attributes["role"] == Reference("role", "ProductLambdaRole", "arn")
        assert fn.attributes["handler"] == "index.handler"

    def test_yaml_fixture_validates(self):
        from resgraph import engine
        declarations, _ = self.parser.parse_file(os.path.join(FIXTURES, "product_stack.yaml"))
        result = engine.run(declarations)
        assert result.order_names[-1] == "function.CreateProductHandler"
        assert len(result.edges) == 2

    def test_json_cycle_fixture(self):
        from resgraph import engine
        from resgraph.errors import CyclicDependency
        declarations, _ = self.parser.parse_file(os.path.join(FIXTURES, "cycle.json"))
        with pytest.raises(CyclicDependency) as exc:
            engine.run(declarations)
        assert exc.value.path == ["role.a", "policy.b"]

    def test_missing_name_rejected(self):
        with pytest.raises(DeclarationError):
            self.parser.parse_document({"resources": [{"kind": "bucket"}]}, "inline.yaml")

    def test_malformed_reference_rejected(self):
        doc = {"resources": [{"kind": "bucket", "name": "b", "attributes": {"x": {"ref": "nodot"}}}]}
        with pytest.raises(DeclarationError):
            self.parser.parse_document(doc, "inline.yaml")

    def test_nonexistent_file_raises(self):
        with pytest.raises(DeclarationError):
            self.parser.parse_file("/nonexistent/path/stack.yaml")


# --------------------------------------------------------- Format Detection
class TestFormatDetection:
    def setup_method(self):
        from resgraph import detect
        self.detect = detect

    def test_tf_extension(self, tmp_path):
        f = tmp_path / "main.tf"
        f.write_text('resource "aws_s3_bucket" "b" {}')
        assert self.detect.detect_format(str(f)) == "terraform"

    def test_declaration_yaml(self):
        assert self.detect.detect_format(os.path.join(FIXTURES, "product_stack.yaml")) == "declaration"

    def test_declaration_json(self):
        assert self.detect.detect_format(os.path.join(FIXTURES, "cycle.json")) == "declaration"

    def test_other_yaml_is_unknown(self):
        assert self.detect.detect_format(os.path.join(FIXTURES, "not_a_declaration.yaml")) == "unknown"

    def test_unknown_returns_unknown(self, tmp_path):
        f = tmp_path / "random.txt"
        f.write_text("hello world")
        assert self.detect.detect_format(str(f)) == "unknown"


# --------------------------------------------------------- Config
class TestConfig:
    def setup_method(self):
        from resgraph import config
        self.config = config

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = self.config.load()
        assert "function" in cfg.schemas
        assert cfg.source is None

    def test_custom_schema_and_alias(self, tmp_path):
        path = tmp_path / "resgraph.yaml"
        path.write_text(
            "aliases:\n"
            "  aws_lambda_alias: function\n"
            "schemas:\n"
            "  queue:\n"
            "    required: {name: string}\n"
            "    outputs: [arn, url]\n"
            "    aliases: [aws_sqs_queue]\n"
            "provider:\n"
            "  region: eu-west-1\n"
        )
        cfg = self.config.load(str(path))
        assert cfg.schemas["queue"].exposes("url")
        assert cfg.aliases == {"aws_lambda_alias": "function"}

        from resgraph import engine
        result = engine.run(
            [("aws_sqs_queue", "q", {"name": "jobs"}),
             ("function", "f", {"role": "arn:aws:iam::1:role/x", "dlq": "${aws_sqs_queue.q.url}",
                                "depends_on": ["aws_sqs_queue.q"]})],
            schemas=cfg.schemas, aliases=cfg.aliases,
            provider=cfg.provider_for({}),
        )
        assert result.order_names == ["queue.q", "function.f"]
        assert result.provider == {"region": "eu-west-1"}

    def test_declared_provider_wins(self):
        cfg = self.config.from_dict({"provider": {"region": "eu-west-1", "profile": "ci"}})
        assert cfg.provider_for({"region": "us-east-1"}) == {"region": "us-east-1", "profile": "ci"}

    def test_bad_value_kind(self):
        with pytest.raises(ConfigError):
            self.config.from_dict({"schemas": {"queue": {"required": {"name": "text"}}}})

    def test_alias_to_unknown_kind(self):
        with pytest.raises(ConfigError):
            self.config.from_dict({"aliases": {"aws_sqs_queue": "queue"}})

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            self.config.load(str(tmp_path / "absent.yaml"))
