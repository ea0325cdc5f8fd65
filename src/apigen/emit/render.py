from __future__ import annotations

from typing import List

from apigen.domain.errors import EmitError
from apigen.synth.specs import CheckPlan, HandlerPlan, ModulePlan, RoutePlan, RouterPlan

INDENT = "    "

RUNTIME_IMPORTS = (
    "InvalidBody",
    "Request",
    "Response",
    "decode_body",
    "error_response",
    "json_response",
)

# names the generated module binds itself; user classes may not shadow them
_RESERVED = set(RUNTIME_IMPORTS) | {
    "annotations",
    "AUTH_HEADER",
    "AUTH_TOKEN",
    "api",
    "request",
    "params",
    "result",
    "exc",
}


def _lit(value: object) -> str:
    return repr(value)


def _indent(lines: List[str], depth: int = 1) -> List[str]:
    return [f"{INDENT * depth}{line}" if line else line for line in lines]


def _error_return(status: int, message: str) -> str:
    return f"return error_response({status}, {_lit(message)})"


# ---------------------------------------------------------------------------
# Builders: plan -> lines
# ---------------------------------------------------------------------------


def build_header(plan: ModulePlan) -> List[str]:
    lines = [
        f"# Code generated by apigen from {plan.source_module}. DO NOT EDIT.",
        "",
        "from __future__ import annotations",
        "",
        "from apigen.runtime import (",
        *_indent([f"{name}," for name in RUNTIME_IMPORTS]),
        ")",
    ]
    if plan.imports:
        lines.append(f"from {plan.source_module} import {', '.join(plan.imports)}")
    lines += [
        "",
        f"AUTH_HEADER = {_lit(plan.auth_header)}",
        f"AUTH_TOKEN = {_lit(plan.auth_token)}",
    ]
    return lines


def build_check(check: CheckPlan) -> List[str]:
    value = f"params.{check.field}"
    if check.kind == "required":
        cond = f"{value} == ''" if check.empty_value == "string" else f"{value} is None"
    elif check.kind == "min_value":
        cond = f"{value} < {check.bound}"
    elif check.kind == "max_value":
        cond = f"{value} > {check.bound}"
    elif check.kind == "min_length":
        cond = f"len({value}) < {check.bound}"
    elif check.kind == "max_length":
        cond = f"len({value}) > {check.bound}"
    else:
        cond = f"{value} not in ({', '.join(_lit(c) for c in check.choices)},)"
    return [f"if {cond}:", *_indent([_error_return(400, check.message)])]


def build_handler(h: HandlerPlan) -> List[str]:
    body: List[str] = []

    if h.requires_auth:
        body += [
            "if request.header(AUTH_HEADER) != AUTH_TOKEN:",
            *_indent([_error_return(401, "unauthorized")]),
        ]

    body += [
        "try:",
        *_indent([f"params = decode_body({h.param_type}, request.body)"]),
        "except InvalidBody:",
        *_indent([_error_return(400, "invalid request body")]),
    ]

    for check in h.checks:
        body += build_check(check)

    body += [
        "try:",
        *_indent([f"result = api.{h.method_name}(request, params)"]),
        "except Exception as exc:",
        *_indent(["return error_response(500, str(exc))"]),
        "return json_response(result)",
    ]

    return [f"def {h.function_name}(api: {h.owner}, request: Request) -> Response:", *_indent(body)]


def build_route(route: RoutePlan) -> List[str]:
    if route.verb:
        cond = f"request.method == {_lit(route.verb)} and request.path == {_lit(route.path)}"
    else:
        cond = f"request.path == {_lit(route.path)}"
    return [f"if {cond}:", *_indent([f"return {route.handler_function}(api, request)"])]


def build_router(r: RouterPlan) -> List[str]:
    body: List[str] = []
    for route in r.routes:
        body += build_route(route)
    body.append('return error_response(404, f"unknown method {request.method} on {request.path}")')
    return [f"def {r.function_name}(api: {r.owner}, request: Request) -> Response:", *_indent(body)]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _check_names(plan: ModulePlan) -> None:
    clash = sorted(_RESERVED.intersection(plan.imports))
    if clash:
        raise EmitError(f"class names clash with names used by generated code: {', '.join(clash)}")
    generated = {h.function_name for h in plan.handlers} | {r.function_name for r in plan.routers}
    clash = sorted(generated.intersection(plan.imports))
    if clash:
        raise EmitError(f"class names clash with generated functions: {', '.join(clash)}")


def render_module(plan: ModulePlan) -> str:
    """
    ModulePlan -> Python source. Pure and deterministic:
    header, then handlers in plan order, then one router per owner.
    """
    _check_names(plan)

    blocks: List[List[str]] = [build_header(plan)]
    blocks += [build_handler(h) for h in plan.handlers]
    blocks += [build_router(r) for r in plan.routers]

    out: List[str] = []
    for i, block in enumerate(blocks):
        if i:
            out += ["", ""]
        out += block
    return "\n".join(out) + "\n"


def verify_source(text: str, filename: str = "<generated>") -> None:
    try:
        compile(text, filename, "exec")
    except SyntaxError as e:
        raise EmitError(f"generated code does not compile: {e.msg}", filename, e.lineno) from e
