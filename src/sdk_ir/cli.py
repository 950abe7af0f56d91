"""CLI entry point for sdk-ir."""

from pathlib import Path

import click

from sdk_ir.config import get_settings
from sdk_ir.ir.builder import build_ir
from sdk_ir.ir.errors import IrError
from sdk_ir.ir.models import IR
from sdk_ir.loader.detect import SpecLoadError
from sdk_ir.loader.load import load_spec
from sdk_ir.logs import configure_logging


def _build(location: str, **overrides) -> IR:
    """Load the document and build its IR, reporting failures as CLI errors."""
    config = get_settings().build_config(**overrides)
    try:
        document = load_spec(location)
        return build_ir(document, config)
    except (SpecLoadError, IrError) as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to SDK_IR_LOG_LEVEL or WARNING).")
def main(log_level: str | None):
    """sdk-ir: build the SDK intermediate representation of an OpenAPI document."""
    configure_logging(log_level or get_settings().log_level)


@main.command()
@click.argument("location")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the IR JSON.")
@click.option("--pagination/--no-pagination", default=True, help="Guess pagination for list operations.")
@click.option("--flatten-errors", is_flag=True, help="Synthesize named schemas for error responses too.")
@click.option("--rules", type=click.Path(exists=True, path_type=Path), default=None, help="Pagination rules YAML.")
def build(location: str, output: Path, pagination: bool, flatten_errors: bool, rules: Path | None):
    """Build the IR of the document at LOCATION (file path or URL)."""
    click.echo(f"Loading {location}...")
    overrides = {"pagination": pagination, "flatten_error_responses": flatten_errors}
    if rules is not None:
        overrides["pagination_rules"] = rules
    ir = _build(location, **overrides)
    click.echo(f"Tuned {len(ir.operations)} operations, {len(ir.registry.synthesized)} synthesized schemas.")
    for warning in ir.warnings:
        click.echo(f"  warning: {warning}", err=True)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(ir.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
    click.echo(f"IR saved to {output}")


@main.command()
@click.argument("location")
def operations(location: str):
    """List canonical operation names of the document at LOCATION."""
    ir = _build(location, pagination=False)
    for op in ir.operations:
        click.echo(f"{op.method.upper():7} {op.path} -> {op.canonical_name} [{op.tag}]")
