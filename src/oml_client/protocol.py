"""
OML text protocol (version 3): line builders and a stream decoder.

A connection carries a header block (key/value lines, then one ``schema:``
line per measurement point), a blank line, then tab-separated data lines.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from pydantic import ValidationError

from .errors import ConfigurationError, ProtocolError
from .models import (
    FieldDef,
    ParsedStream,
    SampleRecord,
    SchemaRecord,
    StreamHeader,
)

PROTOCOL_VERSION = 3
DEFAULT_SERVER_PORT = 3003


def header_lines(domain: str, start_time: float, node_id: str, app_name: str) -> List[str]:
    return [
        f"protocol: {PROTOCOL_VERSION}",
        f"experiment-id: {domain}",
        f"start_time: {int(start_time)}",
        f"sender-id: {node_id}",
        f"app-name: {app_name}",
        "content: text",
    ]


def schema_line(index: int, mp_name: str, fields: Sequence[FieldDef]) -> str:
    return " ".join(["schema:", str(index), mp_name] + [f.schema_token() for f in fields])


def header_block(lines: Sequence[str]) -> str:
    """Header lines terminated by the blank separator line."""
    return "\n".join(lines) + "\n\n"


def data_line(t: float, index: int, seq_no: int, values: Iterable[str]) -> str:
    return "\t".join([str(t), str(index), str(seq_no), *values])


# ---------------------------
# Decoding
# ---------------------------

_HEADER_KEYS = {
    "protocol": "protocol",
    "experiment-id": "experiment_id",
    "start_time": "start_time",
    "sender-id": "sender_id",
    "app-name": "app_name",
    "content": "content",
}


def _parse_schema(rest: str) -> SchemaRecord:
    parts = rest.split()
    if len(parts) < 2:
        raise ProtocolError(f"Malformed schema line: 'schema: {rest}'")
    fields = []
    for token in parts[2:]:
        name, sep, ftype = token.partition(":")
        if not sep:
            raise ProtocolError(f"Malformed field '{token}' in schema '{parts[1]}'")
        try:
            fields.append(FieldDef(name=name, type=ftype))
        except (ConfigurationError, ValidationError) as e:
            raise ProtocolError(f"Invalid field '{token}' in schema '{parts[1]}': {e}")
    try:
        index = int(parts[0])
    except ValueError:
        raise ProtocolError(f"Invalid schema index '{parts[0]}'")
    return SchemaRecord(index=index, name=parts[1], fields=fields)


def _parse_sample(line: str, schemas: dict[int, SchemaRecord]) -> SampleRecord:
    cols = line.split("\t")
    if len(cols) < 3:
        raise ProtocolError(f"Data line has fewer than 3 columns: {line!r}")
    try:
        t, index, seq_no = float(cols[0]), int(cols[1]), int(cols[2])
    except ValueError as e:
        raise ProtocolError(f"Malformed data line {line!r}: {e}")
    schema = schemas.get(index)
    if schema is None:
        raise ProtocolError(f"Data line references unknown schema index {index}")
    raw = cols[3:]
    if len(raw) != len(schema.fields):
        raise ProtocolError(
            f"Data line for '{schema.name}' has {len(raw)} values, schema has {len(schema.fields)}"
        )
    try:
        values = [f.type.from_wire(v) for f, v in zip(schema.fields, raw)]
    except ValueError as e:
        raise ProtocolError(f"Malformed value in {line!r}: {e}")
    return SampleRecord(time=t, schema_index=index, seq_no=seq_no, values=values)


def parse_stream(text: str) -> ParsedStream:
    """Decode one connection's protocol text into header, schemas and samples."""
    lines = text.split("\n")
    meta: dict[str, str] = {}
    schemas: dict[int, SchemaRecord] = {}

    pos = 0
    while pos < len(lines) and lines[pos] != "":
        key, sep, value = lines[pos].partition(":")
        if not sep:
            raise ProtocolError(f"Malformed header line: {lines[pos]!r}")
        value = value.strip()
        if key == "schema":
            s = _parse_schema(value)
            schemas[s.index] = s
        elif key in _HEADER_KEYS:
            meta[_HEADER_KEYS[key]] = value
        else:
            raise ProtocolError(f"Unknown header key '{key}'")
        pos += 1

    if pos >= len(lines):
        raise ProtocolError("Header block is not terminated by a blank line")

    required = ("protocol", "experiment_id", "start_time", "sender_id", "app_name")
    missing = [k for k in required if k not in meta]
    if missing:
        raise ProtocolError(f"Header is missing {', '.join(missing)}")
    header = StreamHeader(**meta)
    if header.protocol != PROTOCOL_VERSION:
        raise ProtocolError(f"Unsupported protocol version {header.protocol}")

    samples = [_parse_sample(line, schemas) for line in lines[pos + 1 :] if line]
    return ParsedStream(header=header, schemas=list(schemas.values()), samples=samples)
