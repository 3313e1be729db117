from __future__ import annotations

import threading
import time
from typing import Callable, Optional, Sequence

from loguru import logger

from ..errors import ConfigurationError
from ..log import verbose
from ..metrics import (
    OML_BATCHES_WRITTEN_TOTAL,
    OML_LINES_DROPPED_TOTAL,
    OML_LINES_ENQUEUED_TOTAL,
    OML_RECONNECTS_TOTAL,
    OML_WRITE_LATENCY_MS,
)
from ..models import FieldDef
from ..protocol import header_block, header_lines, schema_line
from .events import ChannelEvent, ChannelEventBus, ChannelState, channel_events
from .queue import OutgoingQueue
from .transport import Sink, connect

DEFAULT = "default"
RECONNECT_INTERVAL = 5.0

# Write failures that trigger a transparent reconnect
BROKEN_CONNECTION = (BrokenPipeError, ConnectionResetError, ConnectionAbortedError)

Connector = Callable[[str], Sink]


class Channel:
    """One delivery destination: a sink, an outgoing queue and a sender thread.

    ``send`` only enqueues. The sender thread owns the sink and the
    header-sent flag; it batches whatever is queued into one write, sends the
    header block first on every connection and reconnects on broken
    connections without losing or reordering queued lines.
    """

    def __init__(
        self,
        url: str,
        domain: str,
        sink: Sink,
        *,
        connector: Connector = connect,
        reconnect_interval: float = RECONNECT_INTERVAL,
        events: Optional[ChannelEventBus] = None,
    ):
        self._url = url
        self.domain = domain
        self._out: Optional[Sink] = sink
        self._connector = connector
        self._reconnect_interval = reconnect_interval
        self._events = events if events is not None else channel_events()

        self._index = 0
        self._header: list[str] = []
        self._header_sent = False
        self._queue = OutgoingQueue()
        self._state = ChannelState.CONNECTED
        self._closing = False
        # a line is either queued ahead of the shutdown item or counted as dropped
        self._closing_lock = threading.Lock()
        self._drop_warned = False
        self.error: Optional[BaseException] = None

        self._runner = threading.Thread(
            target=self._run, name=f"oml-channel[{url}:{domain}]", daemon=True
        )
        self._runner.start()

    def __repr__(self) -> str:
        return f"Channel(url={self._url!r}, domain={self.domain!r}, state={self._state.value})"

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def alive(self) -> bool:
        return self._runner.is_alive()

    @property
    def queue_size(self) -> int:
        return self._queue.size

    @property
    def header_lines(self) -> tuple[str, ...]:
        return tuple(self._header)

    # --------------------------- header / schema

    def send_protocol_header(
        self, node_id: str, app_name: str, start_time: float, default_domain: Optional[str]
    ) -> None:
        domain = default_domain if self.domain == DEFAULT else self.domain
        if not domain:
            raise ConfigurationError(f"Missing domain name for channel '{self._url}'")
        self._header[:0] = header_lines(domain, start_time, node_id, app_name)

    def send_schema(self, mp_name: str, fields: Sequence[FieldDef]) -> int:
        """Register a schema line and return its index on this channel."""
        self._index += 1
        self._header.append(schema_line(self._index, mp_name, fields))
        return self._index

    # --------------------------- producer side

    def send(self, line: str) -> None:
        with self._closing_lock:
            accepted = not (self._closing or self._state.terminal)
            if accepted:
                self._queue.put(line)
        if accepted:
            OML_LINES_ENQUEUED_TOTAL.labels(channel=self._url).inc()
            return

        OML_LINES_DROPPED_TOTAL.labels(channel=self._url).inc()
        if not self._drop_warned:
            self._drop_warned = True
            state = "closing" if not self._state.terminal else self._state.value
            logger.warning(f"Channel '{self._url}' is {state}; dropping further measurements")

    def close(self, timeout: Optional[float] = None) -> None:
        """Drain the queue, close the sink and wait for the sender to exit."""
        with self._closing_lock:
            if not self._closing:
                self._closing = True
                self._queue.shutdown()
        self._runner.join(timeout)

    # --------------------------- sender thread

    def _set_state(self, state: ChannelState, reason: str | None = None) -> None:
        self._state = state
        self._events.publish(ChannelEvent(self._url, self.domain, state, reason))

    def _run(self) -> None:
        active = True
        try:
            while active:
                lines, active = self._queue.next_batch()
                if lines:
                    self._send("\n".join(lines))
            if self._out is not None and self._out.closeable:
                self._out.close()
            self._out = None
            self._set_state(ChannelState.CLOSED)
            logger.info(f"Channel {self._url} closed")
        except Exception as ex:
            self.error = ex
            logger.exception(
                f"Exception while sending message to channel '{self._url}' ({type(ex).__name__})"
            )
            self._discard_sink()
            self._set_state(ChannelState.FAILED, type(ex).__name__)

    def _send(self, payload: str) -> None:
        started = time.perf_counter()
        while True:
            try:
                self._write(payload)
                break
            except BROKEN_CONNECTION as ex:
                logger.info(f"Trying to reconnect to '{self._url}' ({type(ex).__name__})")
                self._reconnect(type(ex).__name__)
        OML_BATCHES_WRITTEN_TOTAL.labels(channel=self._url).inc()
        OML_WRITE_LATENCY_MS.labels(channel=self._url).observe(
            (time.perf_counter() - started) * 1000.0
        )

    def _write(self, payload: str) -> None:
        if not self._header_sent:
            block = header_block(self._header)
            if verbose(3):
                logger.debug(f"Header for '{self._url}':\n{block}")
            self._out.write(block)
            self._header_sent = True
            self._set_state(ChannelState.HEADER_SENT)
        self._out.write(payload + "\n")
        self._out.flush()

    def _reconnect(self, reason: str) -> None:
        self._set_state(ChannelState.RECONNECTING, reason)
        self._discard_sink()
        while True:
            time.sleep(self._reconnect_interval)
            try:
                self._out = self._connector(self._url)
            except ConnectionRefusedError as ex:
                OML_RECONNECTS_TOTAL.labels(channel=self._url, outcome="refused").inc()
                logger.info(f"Exception while reconnecting to '{self._url}' ({type(ex).__name__})")
                continue
            self._header_sent = False
            OML_RECONNECTS_TOTAL.labels(channel=self._url, outcome="success").inc()
            logger.info(f"Reconnected to '{self._url}'")
            self._set_state(ChannelState.CONNECTED, "reconnected")
            return

    def _discard_sink(self) -> None:
        out, self._out = self._out, None
        if out is None or not out.closeable:
            return
        try:
            out.close()
        except OSError as ex:
            if verbose():
                logger.debug(f"Error closing sink for '{self._url}': {ex}")
