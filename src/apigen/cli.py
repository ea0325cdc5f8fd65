from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from apigen.domain.errors import GenerationError
from apigen.domain.models import GeneratorConfig
from apigen.orchestrator.pipeline import GenerateResult, run_generate


app = typer.Typer(add_completion=False)

console = Console()
err_console = Console(stderr=True)


@app.command()
def generate(
    input_path: str = typer.Argument(..., metavar="INPUT", help="Python module with annotated API methods"),
    output_path: str = typer.Argument(..., metavar="OUTPUT", help="Where to write the generated handlers"),
    module: Optional[str] = typer.Option(
        None, help="Import path of INPUT used by the generated code (default: INPUT file stem)"
    ),
    auth_header: str = typer.Option(
        "Authorization", envvar="APIGEN_AUTH_HEADER", help="Request header carrying the credential"
    ),
    auth_token: str = typer.Option(
        "100500", envvar="APIGEN_AUTH_TOKEN", help="Expected credential for auth=true endpoints"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run every stage but do not write OUTPUT"),
) -> None:
    src = Path(input_path).expanduser()
    out = Path(output_path).expanduser()

    try:
        config = GeneratorConfig(
            module=module if module is not None else src.stem,
            auth_header=auth_header,
            auth_token=auth_token,
        )
    except ValidationError as e:
        raise typer.BadParameter(e.errors()[0]["msg"], param_hint="--module/--auth-header") from e

    try:
        result = run_generate(src, out, config, dry_run=dry_run)
    except GenerationError as e:
        err_console.print(f"[bold red]apigen: {type(e).__name__}[/bold red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from e

    _print_result(result)


def _print_result(result: GenerateResult) -> None:
    console.print(f"[bold green]apigen[/bold green] {result.input_path}")
    console.print(f"Endpoints: [bold]{len(result.endpoints)}[/bold] across {len(result.owners)} type(s)")

    if result.endpoints:
        table = Table(show_header=True, header_style="bold")
        table.add_column("TYPE", no_wrap=True)
        table.add_column("METHOD", no_wrap=True)
        table.add_column("PATH")
        table.add_column("HANDLER")
        table.add_column("AUTH", no_wrap=True)
        table.add_column("PARAMS")

        for e in result.endpoints:
            table.add_row(
                e.spec.owner_type,
                e.spec.http_verb or "*",
                escape(e.spec.route_path),
                e.handler_function,
                "yes" if e.spec.requires_auth else "no",
                e.spec.param_type_name,
            )
        console.print(table)

    if result.output_path is None:
        console.print("Dry run: nothing written.")
    else:
        console.print(f"[bold green]Wrote[/bold green] {result.output_path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
