from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence, Union

from apigen.domain.errors import ConstraintError, RouteConflictError
from apigen.domain.models import ApiSpec, Constraint, ConstraintKind, FieldSpec, SemanticType
from apigen.synth.specs import CheckPlan, HandlerPlan, ModulePlan, RoutePlan, RouterPlan

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SAFE = re.compile(r"[^a-zA-Z0-9_]+")


def snake_case(name: str) -> str:
    # MyApi -> my_api, HTTPApi -> http_api
    s = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    s = _WORD_BOUNDARY.sub(r"\1_\2", s)
    return _SAFE.sub("_", s).strip("_").lower()


def handler_function_name(owner: str, method_name: str) -> str:
    return f"handle_{snake_case(owner)}_{method_name}"


def router_function_name(owner: str) -> str:
    return f"serve_{snake_case(owner)}"


# ---------------------------------------------------------------------------
# Handler synthesis
# ---------------------------------------------------------------------------


def build_handler_plan(spec: ApiSpec, fields: Sequence[FieldSpec], file_path: str = "") -> HandlerPlan:
    """ApiSpec + FieldSpecs -> HandlerPlan (no IO, no text)."""
    checks: list[CheckPlan] = []
    for f in fields:
        for c in f.constraints:
            check = _check_for(f, c, spec, file_path)
            if check is not None:
                checks.append(check)

    return HandlerPlan(
        owner=spec.owner_type,
        method_name=spec.handler_name,
        function_name=handler_function_name(spec.owner_type, spec.handler_name),
        param_type=spec.param_type_name,
        requires_auth=spec.requires_auth,
        checks=tuple(checks),
    )


def _check_for(f: FieldSpec, c: Constraint, spec: ApiSpec, file_path: str) -> Optional[CheckPlan]:
    if c.kind is ConstraintKind.REQUIRED:
        return CheckPlan(
            field=f.name,
            kind="required",
            message=f"{f.name} must be not empty",
            empty_value="string" if f.semantic_type is SemanticType.STRING else "none",
        )

    if c.kind in (ConstraintKind.MIN, ConstraintKind.MAX):
        if f.semantic_type is SemanticType.OTHER:
            # min/max only apply to str and int fields
            return None
        bound = _int_value(c, f, spec, file_path)
        op = ">=" if c.kind is ConstraintKind.MIN else "<="
        if f.semantic_type is SemanticType.INTEGER:
            kind = "min_value" if c.kind is ConstraintKind.MIN else "max_value"
            message = f"{f.name} must be {op} {c.raw_value}"
        else:
            kind = "min_length" if c.kind is ConstraintKind.MIN else "max_length"
            message = f"{f.name} length must be {op} {c.raw_value}"
        return CheckPlan(field=f.name, kind=kind, message=message, bound=bound)

    # enum
    if not c.raw_value:
        raise ConstraintError(
            f"{spec.param_type_name}.{f.name}: enum needs at least one value", file_path, spec.line
        )
    literals = c.raw_value.split("|")
    choices: tuple[Union[str, int], ...]
    if f.semantic_type is SemanticType.INTEGER:
        choices = tuple(_int_literal(v, f, spec, file_path) for v in literals)
    else:
        choices = tuple(literals)
    return CheckPlan(
        field=f.name,
        kind="choices",
        message=f"{f.name} must be one of [{c.raw_value}]",
        choices=choices,
    )


def _int_value(c: Constraint, f: FieldSpec, spec: ApiSpec, file_path: str) -> int:
    try:
        return int(c.raw_value)
    except ValueError:
        raise ConstraintError(
            f"{spec.param_type_name}.{f.name}: {c.kind.value}={c.raw_value!r} is not an integer",
            file_path,
            spec.line,
        ) from None


def _int_literal(v: str, f: FieldSpec, spec: ApiSpec, file_path: str) -> int:
    try:
        return int(v)
    except ValueError:
        raise ConstraintError(
            f"{spec.param_type_name}.{f.name}: enum value {v!r} is not an integer",
            file_path,
            spec.line,
        ) from None


# ---------------------------------------------------------------------------
# Router synthesis
# ---------------------------------------------------------------------------


def _routes_collide(a: RoutePlan, b: RoutePlan) -> bool:
    if a.path != b.path:
        return False
    return a.verb == b.verb or not a.verb or not b.verb


def build_router_plans(specs: Iterable[ApiSpec], file_path: str = "") -> tuple[RouterPlan, ...]:
    """
    Group specs by owner type.

    Determinism: owners in first-declaration order, routes in declaration order.
    Two routes an owner cannot tell apart abort the run.
    """
    by_owner: dict[str, list[RoutePlan]] = {}

    for s in specs:
        route = RoutePlan(
            verb=s.http_verb,
            path=s.route_path,
            handler_function=handler_function_name(s.owner_type, s.handler_name),
        )
        routes = by_owner.setdefault(s.owner_type, [])
        for existing in routes:
            if _routes_collide(existing, route):
                raise RouteConflictError(
                    f"{s.owner_type}.{s.handler_name}: {route.verb or '*'} {route.path} "
                    f"is already served by {existing.handler_function} "
                    f"({existing.verb or '*'} {existing.path})",
                    file_path,
                    s.line,
                )
        routes.append(route)

    return tuple(
        RouterPlan(owner=owner, function_name=router_function_name(owner), routes=tuple(routes))
        for owner, routes in by_owner.items()
    )


def build_module_plan(
    source_module: str,
    handlers: Sequence[HandlerPlan],
    routers: Sequence[RouterPlan],
    auth_header: str,
    auth_token: str,
    file_path: str = "",
) -> ModulePlan:
    names: set[str] = set()
    for h in handlers:
        names.add(h.owner)
        names.add(h.param_type)

    # generated function names must be unique within the module
    seen: dict[str, str] = {}
    for fn, origin in [(h.function_name, f"{h.owner}.{h.method_name}") for h in handlers] + [
        (r.function_name, r.owner) for r in routers
    ]:
        if fn in seen:
            raise RouteConflictError(
                f"{origin} and {seen[fn]} both generate a function named {fn}", file_path
            )
        seen[fn] = origin

    return ModulePlan(
        source_module=source_module,
        imports=tuple(sorted(names)),
        auth_header=auth_header,
        auth_token=auth_token,
        handlers=tuple(handlers),
        routers=tuple(routers),
    )
