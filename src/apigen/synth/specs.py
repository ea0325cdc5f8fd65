from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

CheckKind = Literal["required", "min_value", "max_value", "min_length", "max_length", "choices"]


@dataclass(frozen=True)
class CheckPlan:
    field: str
    kind: CheckKind
    message: str                 # exact 400 message sent to the client
    bound: Optional[int] = None  # min/max kinds
    choices: tuple[Union[str, int], ...] = ()
    empty_value: Literal["string", "none"] = "string"  # required kind


@dataclass(frozen=True)
class HandlerPlan:
    """
    Everything needed to emit one request handler.

    Pipeline order is fixed: auth -> decode -> checks (in order) -> invoke -> respond.
    """

    owner: str
    method_name: str
    function_name: str           # handle_<owner_snake>_<method>
    param_type: str
    requires_auth: bool
    checks: tuple[CheckPlan, ...]


@dataclass(frozen=True)
class RoutePlan:
    verb: str                    # "" matches any verb
    path: str
    handler_function: str


@dataclass(frozen=True)
class RouterPlan:
    owner: str
    function_name: str           # serve_<owner_snake>
    routes: tuple[RoutePlan, ...]


@dataclass(frozen=True)
class ModulePlan:
    source_module: str
    imports: tuple[str, ...]     # names imported from source_module, sorted
    auth_header: str
    auth_token: str
    handlers: tuple[HandlerPlan, ...]
    routers: tuple[RouterPlan, ...]
