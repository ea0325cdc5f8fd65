from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from apigen.domain.errors import AnnotationError, SignatureError
from apigen.domain.models import ApiAnnotation, ApiSpec, DeclarationTree, FunctionDecl

DEFAULT_MARKER = "apigen:api"


def extract_api_specs(tree: DeclarationTree, marker: str = DEFAULT_MARKER) -> list[ApiSpec]:
    """
    One ApiSpec per function whose docstring starts with `marker`, in declaration order.
    Any malformed declaration aborts the whole run.
    """
    specs: list[ApiSpec] = []
    for fn in tree.functions:
        payload = _annotation_payload(fn.doc, marker)
        if payload is None:
            continue
        annotation = _decode_annotation(payload, fn, tree.file_path)
        owner = _owner_type(fn, tree.file_path)
        param_type = _param_type_name(fn, tree.file_path)

        specs.append(
            ApiSpec(
                owner_type=owner,
                handler_name=fn.name,
                route_path=annotation.url,
                http_verb=annotation.method,
                requires_auth=annotation.auth,
                param_type_name=param_type,
                line=fn.line,
            )
        )
    return specs


def _annotation_payload(doc: Optional[str], marker: str) -> Optional[str]:
    # payload is the rest of the marker line; later lines are free text
    if not doc or not doc.startswith(marker):
        return None
    first_line = doc.splitlines()[0]
    return first_line[len(marker):].strip()


def _decode_annotation(payload: str, fn: FunctionDecl, file_path: str) -> ApiAnnotation:
    try:
        return ApiAnnotation.model_validate_json(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in e.errors()
        )
        raise AnnotationError(
            f"cannot decode api annotation on {fn.name}: {problems}", file_path, fn.line
        ) from e


def _owner_type(fn: FunctionDecl, file_path: str) -> str:
    if fn.owner is None:
        raise SignatureError(
            f"{fn.name} is annotated but is not a method of a class", file_path, fn.line
        )
    if fn.receiver != "instance":
        raise SignatureError(
            f"{fn.owner}.{fn.name} must be an instance method (receiver is {fn.receiver})",
            file_path,
            fn.line,
        )
    if fn.is_async:
        raise SignatureError(
            f"{fn.owner}.{fn.name}: generated handlers are synchronous, async methods are not supported",
            file_path,
            fn.line,
        )
    return fn.owner


def _param_type_name(fn: FunctionDecl, file_path: str) -> str:
    # params[0] is the request context, params[1] is the parameter record
    if len(fn.params) < 2:
        raise SignatureError(
            f"{fn.owner}.{fn.name} must accept (ctx, params) after self", file_path, fn.line
        )
    param = fn.params[1]
    if param.type_name is None:
        raise SignatureError(
            f"{fn.owner}.{fn.name}: parameter {param.name!r} must be annotated with a plain class name",
            file_path,
            fn.line,
        )
    return param.type_name
