import pytest

from apigen.compiler.constraints import compile_field_specs, parse_constraint_tag, semantic_type_of
from apigen.compiler.metadata import extract_api_specs
from apigen.domain.errors import UnresolvedTypeError
from apigen.domain.models import Constraint, ConstraintKind, SemanticType
from apigen.extractors.python.declarations import parse_declarations


def test_parse_tag_keeps_token_order():
    assert parse_constraint_tag("required,min=10,max=128,enum=a|b|c") == (
        Constraint(ConstraintKind.REQUIRED, ""),
        Constraint(ConstraintKind.MIN, "10"),
        Constraint(ConstraintKind.MAX, "128"),
        Constraint(ConstraintKind.ENUM, "a|b|c"),
    )
    assert [c.kind for c in parse_constraint_tag("max=5,required")] == [
        ConstraintKind.MAX,
        ConstraintKind.REQUIRED,
    ]


def test_parse_tag_splits_on_first_equals_only():
    (c,) = parse_constraint_tag("enum=a=1|b=2")
    assert c.kind is ConstraintKind.ENUM
    assert c.raw_value == "a=1|b=2"


def test_parse_tag_ignores_unknown_keys_and_empty_tokens():
    tag = " required , ,paramname=full_name,default=x,min=1,"
    assert parse_constraint_tag(tag) == (
        Constraint(ConstraintKind.REQUIRED, ""),
        Constraint(ConstraintKind.MIN, "1"),
    )
    assert parse_constraint_tag("") == ()


def test_semantic_types():
    assert semantic_type_of("int") is SemanticType.INTEGER
    assert semantic_type_of("str") is SemanticType.STRING
    assert semantic_type_of("float") is SemanticType.OTHER
    assert semantic_type_of("Optional[str]") is SemanticType.OTHER


def test_compile_fields_skips_untagged_and_keeps_order(sample_source):
    tree = parse_declarations(sample_source)
    create = extract_api_specs(tree)[1]

    fields = compile_field_specs(create, tree)
    assert [(f.name, f.semantic_type) for f in fields] == [
        ("login", SemanticType.STRING),
        ("status", SemanticType.STRING),
        ("age", SemanticType.INTEGER),
    ]
    assert [c.kind for c in fields[2].constraints] == [ConstraintKind.MIN, ConstraintKind.MAX]


def test_other_types_are_recorded_with_their_constraints(sample_source):
    tree = parse_declarations(sample_source)
    other = extract_api_specs(tree)[2]

    nick = compile_field_specs(other, tree)[-1]
    assert nick.name == "nickname"
    assert nick.semantic_type is SemanticType.OTHER
    assert nick.type_name == "Optional[str]"
    assert nick.constraints == (Constraint(ConstraintKind.MIN, "100"),)


def test_undeclared_param_type_is_fatal():
    src = '''
class Api:
    def create(self, ctx, params: Missing):
        """apigen:api {"url": "/x"}"""
'''
    tree = parse_declarations(src, file_path="api.py")
    spec = extract_api_specs(tree)[0]
    with pytest.raises(UnresolvedTypeError) as exc:
        compile_field_specs(spec, tree)
    assert "Missing" in str(exc.value)
    assert exc.value.line == 3
