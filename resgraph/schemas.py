"""
Built-in kind schemas for the AWS resources a serverless API stack declares:
DynamoDB, API Gateway, Lambda, IAM, ALB and S3.
"""
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from resgraph.models.resource import Reference
from resgraph.models.schema import ResourceSchema, ValueKind

S = ValueKind.STRING
N = ValueKind.NUMBER
B = ValueKind.BOOLEAN
R = ValueKind.REFERENCE
L = ValueKind.LIST
M = ValueKind.MAP

# Terraform namespaces that are inputs to the stack rather than resources in it
EXTERNAL_NAMESPACES = {"var", "local", "data", "module", "path", "each", "count", "self", "terraform"}

# ${aws_iam_role.lambda_role.arn}/* or aws_iam_role.lambda_role.arn
_INTERP_RE = re.compile(r"^\$\{(?P<path>[^{}]+)\}")
_PATH_RE = re.compile(
    r"^(?P<kind>[A-Za-z][\w-]*)\.(?P<name>[A-Za-z_][\w-]*)"
    r"(?:\.(?P<attr>[A-Za-z_]\w*))?"
    r"(?:\[[^\]]*\]|\.[\w*]+)*$"
)
# any ${...} segment, and the resource paths inside its expression
_EXPR_RE = re.compile(r"\$\{(?P<expr>[^{}]+)\}")
_QUOTED_RE = re.compile(r'"(?:[^"\\]|\\.)*"')
_TOKEN_RE = re.compile(
    r"(?<![\w.-])(?P<kind>[A-Za-z][\w-]*)\.(?P<name>[A-Za-z_][\w-]*)"
    r"(?:\.(?P<attr>[A-Za-z_]\w*))?"
)


def _schema(kind: str, aliases: Iterable[str] = (), required: Optional[Dict] = None,
            optional: Optional[Dict] = None, outputs: Iterable[str] = ()) -> ResourceSchema:
    return ResourceSchema(
        kind=kind,
        required=dict(required or {}),
        optional=dict(optional or {}),
        outputs=frozenset(outputs),
        aliases=tuple(aliases),
    )


BUILTIN_SCHEMAS: Dict[str, ResourceSchema] = {s.kind: s for s in (
    _schema(
        "table", ["aws_dynamodb_table"],
        required={"hash_key": S},
        optional={"name": S, "range_key": S, "billing_mode": S, "attribute": ValueKind.ANY,
                  "read_capacity": N, "write_capacity": N, "stream_enabled": B, "tags": M},
        outputs=["id", "arn", "name", "stream_arn", "hash_key"],
    ),
    _schema(
        "rest-api", ["aws_api_gateway_rest_api"],
        required={"name": S},
        optional={"description": S, "endpoint_configuration": ValueKind.ANY, "tags": M},
        outputs=["id", "arn", "root_resource_id", "execution_arn", "name"],
    ),
    _schema(
        "route", ["aws_api_gateway_resource"],
        required={"rest_api_id": R, "parent_id": R, "path_part": S},
        outputs=["id", "path"],
    ),
    _schema(
        "method", ["aws_api_gateway_method"],
        required={"rest_api_id": R, "resource_id": R, "http_method": S, "authorization": S},
        optional={"api_key_required": B, "request_parameters": M},
        outputs=["id", "http_method", "resource_id"],
    ),
    _schema(
        "integration", ["aws_api_gateway_integration"],
        required={"rest_api_id": R, "resource_id": R, "http_method": S, "type": S},
        optional={"integration_http_method": S, "uri": R, "timeout_milliseconds": N},
        outputs=["id"],
    ),
    _schema(
        "permission", ["aws_lambda_permission"],
        required={"action": S, "function_name": R, "principal": S},
        optional={"statement_id": S, "source_arn": R},
        outputs=["id"],
    ),
    _schema(
        "deployment", ["aws_api_gateway_deployment"],
        required={"rest_api_id": R},
        optional={"stage_name": S, "description": S, "triggers": M},
        outputs=["id", "invoke_url", "execution_arn", "created_date"],
    ),
    _schema(
        "role", ["aws_iam_role"],
        optional={"name": S, "assume_role_policy": S, "description": S, "tags": M},
        outputs=["id", "arn", "name", "unique_id"],
    ),
    _schema(
        "policy", ["aws_iam_policy", "aws_iam_role_policy"],
        required={"policy": S},
        optional={"name": S, "description": S, "role": R},
        outputs=["id", "arn", "name", "policy_id"],
    ),
    _schema(
        "policy-attachment", ["aws_iam_role_policy_attachment"],
        required={"role": R, "policy_arn": R},
        outputs=["id"],
    ),
    _schema(
        "function", ["aws_lambda_function"],
        required={"role": R},
        optional={"function_name": S, "handler": S, "runtime": S, "filename": S,
                  "source_code_hash": S, "timeout": N, "memory_size": N,
                  "environment": ValueKind.ANY, "table": R},
        outputs=["id", "arn", "invoke_arn", "function_name", "qualified_arn", "version"],
    ),
    _schema(
        "load-balancer", ["aws_lb", "aws_alb"],
        optional={"name": S, "internal": B, "load_balancer_type": S, "subnets": L,
                  "security_groups": L, "enable_deletion_protection": B, "tags": M},
        outputs=["id", "arn", "arn_suffix", "dns_name", "zone_id"],
    ),
    _schema(
        "bucket", ["aws_s3_bucket"],
        optional={"bucket": S, "acl": S, "force_destroy": B, "tags": M},
        outputs=["id", "arn", "bucket", "bucket_domain_name", "bucket_regional_domain_name"],
    ),
)}


def merge_schemas(overrides: Optional[Mapping[str, ResourceSchema]] = None,
                  base: Optional[Mapping[str, ResourceSchema]] = None) -> Dict[str, ResourceSchema]:
    merged = dict(BUILTIN_SCHEMAS if base is None else base)
    if overrides:
        merged.update(overrides)
    return merged


def parse_reference(value: Any) -> Optional[Reference]:
    """
    Parse ``kind.name[.attr]`` or ``${kind.name[.attr]}...`` into a Reference.
    Anything else returns None.
    """
    if isinstance(value, Reference):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    m = _INTERP_RE.match(text)
    path = m.group("path").strip() if m else text
    p = _PATH_RE.match(path)
    if not p:
        return None
    return Reference(kind=p.group("kind"), name=p.group("name"), attribute=p.group("attr"))


def is_external(reference: Reference) -> bool:
    return reference.kind in EXTERNAL_NAMESPACES


def is_literal_arn(value: Any) -> bool:
    """A hard-coded ARN points outside the declaration and needs no edge."""
    return isinstance(value, str) and value.strip().startswith("arn:")


def has_expression(value: Any) -> bool:
    """True when a string carries at least one ``${...}`` expression."""
    return isinstance(value, str) and _EXPR_RE.search(value) is not None


def find_references(value: Any) -> List[Reference]:
    """
    Every resource path named by a reference-typed string, in order.

    ``${...}`` segments may sit anywhere in the text, more than once, and hold
    any expression::

        arn:aws:apigateway:${var.region}:lambda:path/functions/${aws_lambda_function.f.arn}/invocations
        ${var.enabled ? aws_iam_role.r.arn : null}

    Quoted literals inside an expression are skipped. A string with no
    ``${`` is read as a bare ``kind.name[.attr]`` path.
    """
    if isinstance(value, Reference):
        return [value]
    if not isinstance(value, str):
        return []
    exprs = [m.group("expr") for m in _EXPR_RE.finditer(value)]
    if not exprs:
        r = parse_reference(value)
        return [r] if r is not None else []
    found: List[Reference] = []
    for expr in exprs:
        for t in _TOKEN_RE.finditer(_QUOTED_RE.sub('""', expr)):
            r = Reference(kind=t.group("kind"), name=t.group("name"), attribute=t.group("attr"))
            if r not in found:
                found.append(r)
    return found
