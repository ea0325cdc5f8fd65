from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ReceiverKind = Literal["instance", "static", "class", "none"]

_DOTTED_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


# ---------------------------------------------------------------------------
# Declaration tree (parser output, read-only afterwards)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParamDecl:
    name: str
    type_name: Optional[str]  # None when the annotation is missing or not a plain name


@dataclass(frozen=True)
class FunctionDecl:
    name: str
    owner: Optional[str]
    receiver: ReceiverKind
    doc: Optional[str]
    params: tuple[ParamDecl, ...]  # receiver excluded
    is_async: bool
    line: int


@dataclass(frozen=True)
class RecordField:
    name: str
    type_name: str
    raw_tag: Optional[str]
    line: int


@dataclass(frozen=True)
class RecordDecl:
    name: str
    fields: tuple[RecordField, ...]
    line: int


@dataclass(frozen=True)
class DeclarationTree:
    file_path: str
    functions: tuple[FunctionDecl, ...]
    records: tuple[RecordDecl, ...]

    def find_record(self, name: str) -> Optional[RecordDecl]:
        for r in self.records:
            if r.name == name:
                return r
        return None


# ---------------------------------------------------------------------------
# Compiled metadata
# ---------------------------------------------------------------------------


class ApiAnnotation(BaseModel):
    """Payload that follows the marker in a method docstring."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    url: str
    auth: bool = False
    method: str = ""


@dataclass(frozen=True)
class ApiSpec:
    owner_type: str
    handler_name: str
    route_path: str
    http_verb: str  # "" accepts any verb
    requires_auth: bool
    param_type_name: str
    line: int = 0


class SemanticType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    OTHER = "other"


class ConstraintKind(str, Enum):
    REQUIRED = "required"
    MIN = "min"
    MAX = "max"
    ENUM = "enum"


@dataclass(frozen=True)
class Constraint:
    kind: ConstraintKind
    raw_value: str = ""


@dataclass(frozen=True)
class FieldSpec:
    name: str
    semantic_type: SemanticType
    type_name: str
    constraints: tuple[Constraint, ...]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    module: str
    marker: str = "apigen:api"
    auth_header: str = Field(default="Authorization", min_length=1)
    auth_token: str = "100500"

    @field_validator("module")
    @classmethod
    def _module_is_importable_name(cls, v: str) -> str:
        v = v.strip()
        if not _DOTTED_IDENT.match(v):
            raise ValueError(f"not an importable module name: {v!r}")
        return v
