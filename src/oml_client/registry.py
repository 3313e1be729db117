"""
Schema registry and the freeze/registration protocol.

A Registry holds the declared measurement-point schemas and their channel
bindings. Declarations are only allowed before freeze. ``init_all`` freezes
the registry, resolves channel names through the ChannelDirectory, builds
each channel's protocol header and schema lines, and activates injection.
``close`` drains every channel and resets the registry so it can be
initialized again.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

from loguru import logger
from pydantic import ValidationError

from .channel import DEFAULT, Channel, ChannelDirectory
from .errors import ConfigurationError, SampleShapeError, SampleValueError
from .log import verbose
from .metrics import OML_SAMPLES_INJECTED_TOTAL
from .models import FieldDef, FieldType, MeasurementPointSchema
from .protocol import data_line


@dataclass
class Binding:
    """A measurement point's resolved channel and its schema index there."""

    channel: Channel
    index: Optional[int] = None


class Registry:
    """Declared measurement points, their bindings and the freeze state.

    Measurement-point types are any hashable key, normally a
    ``MeasurementPoint`` subclass.

    Example:
        reg = Registry()
        reg.declare_name(CPU, "cpu")
        reg.declare_field(CPU, "load", "double")
        reg.directory.create("default", "file:-")
        reg.init_all("lab", "node1", "monitor")
        reg.inject(CPU, 0.42)
        reg.close()
    """

    def __init__(
        self,
        directory: Optional[ChannelDirectory] = None,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.directory = directory if directory is not None else ChannelDirectory()
        self._clock = clock
        self._schemas: Dict[Hashable, MeasurementPointSchema] = {}
        self._declared: Dict[Hashable, List[Tuple[str, str]]] = {}
        self._bindings: Dict[Hashable, List[Binding]] = {}
        self._frozen = False
        self._active = False
        self._start_time: Optional[float] = None
        # serializes sequence numbering and enqueueing across producer threads
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def active(self) -> bool:
        return self._active

    @property
    def start_time(self) -> Optional[float]:
        return self._start_time

    def schema(self, mp: Hashable) -> MeasurementPointSchema:
        """Schema of ``mp``, created empty on first use before freeze."""
        s = self._schemas.get(mp)
        if s is None:
            if self._frozen:
                raise ConfigurationError(f"'{_label(mp)}' is not a declared measurement point")
            s = self._schemas[mp] = MeasurementPointSchema()
        return s

    def each_mp(self) -> Iterator[Tuple[Hashable, MeasurementPointSchema]]:
        return iter(list(self._schemas.items()))

    def bindings(self, mp: Hashable) -> List[Binding]:
        return list(self._bindings.get(mp, []))

    # --------------------------- declarations

    def _check_mutable(self, mp: Hashable) -> None:
        if self._frozen:
            raise ConfigurationError(f"Cannot declare '{_label(mp)}' after the registry is frozen")

    def declare_name(self, mp: Hashable, name: str) -> None:
        self._check_mutable(mp)
        self.schema(mp).name = name

    def declare_field(self, mp: Hashable, name: str, type: FieldType | str | None = None) -> None:
        self._check_mutable(mp)
        try:
            fdef = FieldDef(name=name, type=type)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid field '{name}' for '{_label(mp)}': {e}")
        self.schema(mp).fields.append(fdef)

    def declare_channel(self, mp: Hashable, channel: str, domain: str = DEFAULT) -> None:
        self._check_mutable(mp)
        self.schema(mp)
        self._declared.setdefault(mp, []).append((str(channel), str(domain)))

    # --------------------------- freeze protocol

    def freeze(self, app_name: str, start_time: float) -> None:
        """Lock declarations and resolve channel bindings. Idempotent."""
        if self._frozen:
            return

        unnamed = [_label(mp) for mp, s in self._schemas.items() if not s.name]
        if unnamed:
            raise ConfigurationError(f"Missing 'name' declaration for {', '.join(unnamed)}")

        resolved: Dict[Hashable, List[Binding]] = {}
        for mp in self._schemas:
            pairs = self._declared.get(mp) or [(DEFAULT, DEFAULT)]
            if verbose():
                logger.debug(f"Resolving channels {pairs} for '{_label(mp)}'")
            resolved[mp] = [Binding(self.directory.lookup(name, domain)) for name, domain in pairs]

        self._bindings = resolved
        self._start_time = start_time
        self._frozen = True
        if verbose():
            logger.debug(
                f"Registry frozen for '{app_name}' with {len(resolved)} measurement points"
            )

    def init_all(
        self,
        domain: str,
        node_id: str,
        app_name: str,
        start_time: Optional[float] = None,
    ) -> None:
        """Freeze, send headers and schemas on every channel, and activate injection."""
        if self._frozen:
            if verbose():
                logger.debug("Registry already initialized")
            return
        if not (domain and node_id and app_name):
            raise ConfigurationError("Missing values for domain, node id or application name")

        start_time = self._clock() if start_time is None else start_time
        self.directory.default_domain = domain
        self.freeze(app_name, start_time)

        for channel in self.directory.channels():
            channel.send_protocol_header(node_id, app_name, start_time, domain)

        for mp, schema in self._schemas.items():
            mp_name = f"{app_name}_{schema.name}"
            for binding in self._bindings[mp]:
                binding.index = binding.channel.send_schema(mp_name, schema.fields)
                if verbose():
                    logger.debug(f"Schema {binding.index} '{mp_name}' on {binding.channel.url}")

        self._active = True

    def unfreeze(self) -> None:
        """Reset counters, bindings and start time so the registry can be reinitialized."""
        for schema in self._schemas.values():
            schema.seq_no = 0
        self._declared = {}
        self._bindings = {}
        self._start_time = None
        self._frozen = False
        self._active = False

    def close(self) -> None:
        """Block until all channels have drained, then reset."""
        self.directory.close_all()
        self.unfreeze()

    # --------------------------- samples

    def inject(self, mp: Hashable, *values) -> Optional[Sequence]:
        """Emit one sample of ``mp`` on all its channels. No-op until active."""
        if not self._active:
            return None

        schema = self._schemas.get(mp)
        if schema is None:
            raise ConfigurationError(f"'{_label(mp)}' is not a declared measurement point")
        if len(values) != schema.arity:
            raise SampleShapeError(
                f"Size mismatch between the measurement ({len(values)}) "
                f"and the MP definition ({schema.arity}) of '{schema.name}'"
            )

        encoded = []
        for fdef, value in zip(schema.fields, values):
            try:
                encoded.append(fdef.type.to_wire(value))
            except SampleValueError as e:
                raise SampleValueError(f"{schema.name}.{fdef.name}: {e}") from e

        with self._lock:
            t = self._clock() - self._start_time
            schema.seq_no += 1
            for binding in self._bindings[mp]:
                binding.channel.send(data_line(t, binding.index, schema.seq_no, encoded))

        OML_SAMPLES_INJECTED_TOTAL.labels(mp=schema.name).inc()
        return values


def _label(mp: Hashable) -> str:
    return getattr(mp, "__name__", None) or repr(mp)


# --- Singleton accessor for in-process use ---

_registry: Optional[Registry] = None


def default_registry() -> Registry:
    """Process-wide registry used by MeasurementPoint subclasses without their own."""
    global _registry
    if _registry is None:
        _registry = Registry()
    return _registry
