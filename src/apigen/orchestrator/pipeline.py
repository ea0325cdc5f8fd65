from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from apigen.compiler.constraints import compile_field_specs
from apigen.compiler.metadata import extract_api_specs
from apigen.domain.models import ApiSpec, DeclarationTree, FieldSpec, GeneratorConfig
from apigen.emit.render import render_module, verify_source
from apigen.emit.writer import write_atomic
from apigen.extractors.python.declarations import parse_declarations, parse_declarations_file
from apigen.synth.plan import build_handler_plan, build_module_plan, build_router_plans
from apigen.synth.specs import ModulePlan


@dataclass(frozen=True)
class EndpointSummary:
    spec: ApiSpec
    fields: tuple[FieldSpec, ...]
    handler_function: str


@dataclass(frozen=True)
class GenerateResult:
    input_path: str
    output_path: str | None      # None on dry runs
    endpoints: list[EndpointSummary]
    owners: list[str]
    source: str


def plan_module(tree: DeclarationTree, config: GeneratorConfig) -> tuple[ModulePlan, list[EndpointSummary]]:
    """Declaration tree -> module plan. Stages run strictly in order; any GenerationError aborts."""
    specs = extract_api_specs(tree, marker=config.marker)

    handlers = []
    endpoints: list[EndpointSummary] = []
    for spec in specs:
        fields = compile_field_specs(spec, tree)
        handler = build_handler_plan(spec, fields, file_path=tree.file_path)
        handlers.append(handler)
        endpoints.append(EndpointSummary(spec=spec, fields=fields, handler_function=handler.function_name))

    routers = build_router_plans(specs, file_path=tree.file_path)
    plan = build_module_plan(
        source_module=config.module,
        handlers=handlers,
        routers=routers,
        auth_header=config.auth_header,
        auth_token=config.auth_token,
        file_path=tree.file_path,
    )
    return plan, endpoints


def generate_source(source: str, config: GeneratorConfig, file_path: str = "<input>") -> str:
    tree = parse_declarations(source, file_path=file_path)
    plan, _ = plan_module(tree, config)
    text = render_module(plan)
    verify_source(text)
    return text


def run_generate(
    input_path: Path,
    output_path: Path,
    config: GeneratorConfig,
    dry_run: bool = False,
) -> GenerateResult:
    input_path = Path(input_path).expanduser()
    output_path = Path(output_path).expanduser()

    tree = parse_declarations_file(input_path)
    plan, endpoints = plan_module(tree, config)
    text = render_module(plan)
    verify_source(text, str(output_path))

    written: str | None = None
    if not dry_run:
        written = str(write_atomic(output_path, text))

    return GenerateResult(
        input_path=str(input_path),
        output_path=written,
        endpoints=endpoints,
        owners=[r.owner for r in plan.routers],
        source=text,
    )
