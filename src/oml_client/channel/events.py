"""
Channel state events.

Each channel publishes its sender state transitions (connected, header sent,
reconnecting, closed, failed) on an in-process pub/sub bus. Subscribers can
watch delivery health without touching the sender thread's state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from loguru import logger

from ..log import verbose


class ChannelState(str, Enum):
    """Sender state of a channel."""

    CONNECTED = "connected"  # sink open, header not yet written
    HEADER_SENT = "header_sent"  # header block written on current sink
    RECONNECTING = "reconnecting"  # connection lost, retrying
    CLOSED = "closed"  # drained and sink closed (terminal)
    FAILED = "failed"  # sender stopped on an unexpected error (terminal)

    @property
    def terminal(self) -> bool:
        return self in (ChannelState.CLOSED, ChannelState.FAILED)


@dataclass(frozen=True)
class ChannelEvent:
    """Immutable state transition of one channel.

    Attributes:
        url: Transport URL of the channel
        domain: Domain the channel is bound to
        state: State entered
        reason: Optional context (exception class name, ...)
    """

    url: str
    domain: str
    state: ChannelState
    reason: str | None = None


class ChannelSubscriber(Protocol):
    """Callable receiving ChannelEvent. Called on the sender thread."""

    def __call__(self, event: ChannelEvent) -> None: ...


class ChannelEventBus:
    """In-process pub/sub bus for channel state events.

    One subscriber's failure does not affect others. Publishing happens on
    the channel's sender thread, so subscribers must be quick and thread safe.

    Example:
        bus = ChannelEventBus()

        def on_event(event: ChannelEvent):
            if event.state == ChannelState.RECONNECTING:
                alert(event.url)

        bus.subscribe(on_event)
    """

    def __init__(self) -> None:
        self._subs: list[ChannelSubscriber] = []

    def subscribe(self, callback: ChannelSubscriber) -> None:
        if callback not in self._subs:
            self._subs.append(callback)
            if verbose():
                logger.debug(f"Channel subscriber added (total: {len(self._subs)})")

    def unsubscribe(self, callback: ChannelSubscriber) -> None:
        """Remove a subscriber. No-op if it was never subscribed."""
        try:
            self._subs.remove(callback)
            if verbose():
                logger.debug(f"Channel subscriber removed (total: {len(self._subs)})")
        except ValueError:
            pass

    def publish(self, event: ChannelEvent) -> None:
        if not self._subs:
            return

        # Iterate over copy to allow unsubscribe during iteration
        for callback in list(self._subs):
            try:
                callback(event)
            except Exception as exc:
                logger.warning(f"Channel subscriber error (ignored): {type(exc).__name__}: {exc}")

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)


# --- Singleton accessor for in-process use ---

_bus: Optional[ChannelEventBus] = None


def channel_events() -> ChannelEventBus:
    """Process-wide bus used by channels that are not given their own."""
    global _bus
    if _bus is None:
        _bus = ChannelEventBus()
    return _bus
