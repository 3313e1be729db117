from __future__ import annotations

import json
import sys
from typing import List

import typer
from loguru import logger

from .channel import DEFAULT
from .errors import OMLError, SampleShapeError
from .log import set_log_level
from .models import FieldType
from .protocol import parse_stream
from .registry import Registry

app = typer.Typer(help="oml-client measurement CLI")

# ---------------------------
# Common options
# ---------------------------


def domain_opt() -> str:
    return typer.Option(..., "--domain", envvar="OML_DOMAIN", help="Experimental domain")


def node_id_opt() -> str:
    return typer.Option(..., "--node-id", envvar="OML_NAME", help="Name of this sender")


def collect_opt() -> str:
    return typer.Option("file:-", "--collect", envvar="OML_COLLECT", help="Collection URI")


def _parse_field(spec: str) -> tuple[str, str]:
    name, sep, ftype = spec.partition(":")
    if not name:
        raise typer.BadParameter(f"Invalid field '{spec}', expected name[:type]")
    return name, ftype if sep else FieldType.STRING.value


# ---------------------------
# Commands
# ---------------------------


@app.command("inject")
def inject(
    mp: str = typer.Option(..., "--mp", help="Measurement point name"),
    field: List[str] = typer.Option([], "--field", help="Field as name:type, repeatable"),
    app_name: str = typer.Option("oml-client", "--app-name", help="Application name"),
    separator: str = typer.Option("\t", "--separator", help="Column separator of input rows"),
    log_level: int = typer.Option(0, "--log-level", envvar="OML_LOG_LEVEL"),
    domain: str = domain_opt(),
    node_id: str = node_id_opt(),
    collect: str = collect_opt(),
):
    """Inject one sample per stdin row into a single measurement point."""
    set_log_level(log_level)
    fields = [_parse_field(f) for f in field]

    reg = Registry()
    try:
        reg.declare_name(mp, mp)
        for name, ftype in fields:
            reg.declare_field(mp, name, ftype)
        reg.directory.create(DEFAULT, collect)
        reg.init_all(domain, node_id, app_name)
    except OMLError as e:
        logger.error(f"Failed to initialize: {e}")
        reg.close()
        sys.exit(1)

    schema = reg.schema(mp)
    count = 0
    try:
        for lineno, row in enumerate(sys.stdin, start=1):
            row = row.rstrip("\r\n")
            if not row:
                continue
            cols = row.split(separator) if schema.fields else []
            try:
                if len(cols) != schema.arity:
                    raise SampleShapeError(f"expected {schema.arity} columns, got {len(cols)}")
                reg.inject(mp, *[f.type.from_wire(c) for f, c in zip(schema.fields, cols)])
            except (OMLError, ValueError) as e:
                logger.error(f"Line {lineno}: {e}")
                sys.exit(1)
            count += 1
    finally:
        reg.close()
    logger.info(f"Injected {count} samples into '{mp}'")


@app.command("decode")
def decode(
    path: str = typer.Argument("-", help="Captured protocol stream ('-' for stdin)"),
    samples_only: bool = typer.Option(False, "--samples-only", help="Only print samples"),
):
    """Parse a captured text-protocol stream and print it as NDJSON."""
    if path == "-":
        text = sys.stdin.read()
    else:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()

    try:
        stream = parse_stream(text)
    except OMLError as e:
        logger.error(f"Failed to decode '{path}': {e}")
        sys.exit(1)

    if not samples_only:
        typer.echo(json.dumps({"header": stream.header.model_dump()}))
        for s in stream.schemas:
            typer.echo(json.dumps({"schema": s.model_dump(mode="json")}))
    for sample in stream.samples:
        name = stream.schema(sample.schema_index).name
        typer.echo(json.dumps({"mp": name, **sample.model_dump()}))


if __name__ == "__main__":
    app()
