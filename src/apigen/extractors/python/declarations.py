from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Optional

from apigen.domain.errors import DeclarationParseError
from apigen.domain.models import (
    DeclarationTree,
    FunctionDecl,
    ParamDecl,
    ReceiverKind,
    RecordDecl,
    RecordField,
)

_FunctionNode = (ast.FunctionDef, ast.AsyncFunctionDef)


def parse_declarations(source: str, file_path: str = "<input>") -> DeclarationTree:
    """
    Parse Python source into a DeclarationTree:
      - every top-level class is a record (its annotated class attributes are fields)
      - every top-level def, and every def directly inside a top-level class, is a function
    Uses ast only; does not import/execute code. A syntax error aborts the run.
    """
    try:
        tree = ast.parse(source, filename=file_path)
    except SyntaxError as e:
        raise DeclarationParseError(f"invalid syntax: {e.msg}", file_path, e.lineno) from e

    functions: list[FunctionDecl] = []
    records: list[RecordDecl] = []

    for node in tree.body:
        if isinstance(node, _FunctionNode):
            functions.append(_function_decl(node, owner=None))
        elif isinstance(node, ast.ClassDef):
            records.append(_record_decl(node))
            for member in node.body:
                if isinstance(member, _FunctionNode):
                    functions.append(_function_decl(member, owner=node.name))

    return DeclarationTree(
        file_path=file_path,
        functions=tuple(functions),
        records=tuple(records),
    )


def parse_declarations_file(path: Path) -> DeclarationTree:
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DeclarationParseError(f"cannot read input: {e}", str(path)) from e
    return parse_declarations(source, file_path=str(path))


def _function_decl(node: ast.AST, owner: Optional[str]) -> FunctionDecl:
    positional = list(node.args.posonlyargs) + list(node.args.args)
    receiver = _receiver_kind(node, owner, positional)

    # the bound instance is the receiver, not a parameter
    if receiver in ("instance", "class"):
        positional = positional[1:]

    return FunctionDecl(
        name=node.name,
        owner=owner,
        receiver=receiver,
        doc=ast.get_docstring(node),
        params=tuple(ParamDecl(name=a.arg, type_name=_plain_name(a.annotation)) for a in positional),
        is_async=isinstance(node, ast.AsyncFunctionDef),
        line=getattr(node, "lineno", 1) or 1,
    )


def _receiver_kind(node: ast.AST, owner: Optional[str], positional: list[ast.arg]) -> ReceiverKind:
    if owner is None:
        return "none"
    decorators = set(_decorator_names(node.decorator_list))
    if "staticmethod" in decorators:
        return "static"
    if "classmethod" in decorators:
        return "class"
    if not positional:
        return "none"
    return "instance"


def _decorator_names(decorators: Iterable[ast.AST]) -> Iterable[str]:
    for dec in decorators:
        if isinstance(dec, ast.Call):
            dec = dec.func
        if isinstance(dec, ast.Name):
            yield dec.id
        elif isinstance(dec, ast.Attribute):
            yield dec.attr


def _record_decl(node: ast.ClassDef) -> RecordDecl:
    fields: list[RecordField] = []
    for stmt in node.body:
        if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
            continue
        type_node, raw_tag = _split_annotated(stmt.annotation)
        fields.append(
            RecordField(
                name=stmt.target.id,
                type_name=_type_name(type_node),
                raw_tag=raw_tag,
                line=getattr(stmt, "lineno", 1) or 1,
            )
        )
    return RecordDecl(name=node.name, fields=tuple(fields), line=node.lineno)


def _split_annotated(annotation: ast.AST) -> tuple[ast.AST, Optional[str]]:
    """
    Annotated[T, "required,min=3"] -> (T, "required,min=3")
    Anything else -> (annotation, None)
    """
    if not isinstance(annotation, ast.Subscript):
        return annotation, None
    base = annotation.value
    base_name = base.id if isinstance(base, ast.Name) else getattr(base, "attr", "")
    if base_name != "Annotated":
        return annotation, None

    args = annotation.slice
    if not isinstance(args, ast.Tuple) or not args.elts:
        return annotation, None

    type_node, *extras = args.elts
    for extra in extras:
        if isinstance(extra, ast.Constant) and isinstance(extra.value, str):
            return type_node, extra.value
    return type_node, None


def _plain_name(node: Optional[ast.AST]) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    return None


def _type_name(node: ast.AST) -> str:
    if isinstance(node, ast.Name):
        return node.id
    # Optional[str], list[int], str | None ... kept verbatim, never int/str
    return ast.unparse(node)
