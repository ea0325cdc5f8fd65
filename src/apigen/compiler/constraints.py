from __future__ import annotations

from apigen.domain.errors import UnresolvedTypeError
from apigen.domain.models import (
    ApiSpec,
    Constraint,
    ConstraintKind,
    DeclarationTree,
    FieldSpec,
    SemanticType,
)

_KNOWN_KEYS = {k.value: k for k in ConstraintKind}

_SEMANTIC_TYPES = {
    "int": SemanticType.INTEGER,
    "str": SemanticType.STRING,
}


def parse_constraint_tag(raw: str) -> tuple[Constraint, ...]:
    """
    "required,min=10,enum=a|b" -> (required, min "10", enum "a|b")

    Token order is kept. Unknown keys and empty tokens are dropped.
    A token without "=" is a flag with an empty value.
    """
    out: list[Constraint] = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        key, _, value = token.partition("=")
        kind = _KNOWN_KEYS.get(key.strip())
        if kind is None:
            continue
        out.append(Constraint(kind=kind, raw_value=value.strip()))
    return tuple(out)


def semantic_type_of(type_name: str) -> SemanticType:
    return _SEMANTIC_TYPES.get(type_name, SemanticType.OTHER)


def compile_field_specs(spec: ApiSpec, tree: DeclarationTree) -> tuple[FieldSpec, ...]:
    record = tree.find_record(spec.param_type_name)
    if record is None:
        raise UnresolvedTypeError(
            f"{spec.owner_type}.{spec.handler_name} takes {spec.param_type_name}, "
            "which is not declared in this module",
            tree.file_path,
            spec.line,
        )

    fields: list[FieldSpec] = []
    for f in record.fields:
        if f.raw_tag is None:
            continue
        fields.append(
            FieldSpec(
                name=f.name,
                semantic_type=semantic_type_of(f.type_name),
                type_name=f.type_name,
                constraints=parse_constraint_tag(f.raw_tag),
            )
        )
    return tuple(fields)
