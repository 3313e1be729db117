"""Channels: per-destination outgoing queue, sender thread and transport.

- OutgoingQueue (unbounded, explicit shutdown item)
- Channel sender with batching and reconnect
- ChannelDirectory keyed by (name, domain) with domain fallback
- Transport connector for file: and tcp: URLs
- Channel state events
"""

from .channel import BROKEN_CONNECTION, DEFAULT, RECONNECT_INTERVAL, Channel
from .directory import ChannelDirectory
from .events import ChannelEvent, ChannelEventBus, ChannelState, channel_events
from .queue import SHUTDOWN, OutgoingQueue, Shutdown
from .transport import Sink, SocketSink, StreamSink, connect, parse_tcp_url

__all__ = [
    # runtime
    "Channel",
    "ChannelDirectory",
    "OutgoingQueue",
    "Shutdown",
    "SHUTDOWN",
    # transport
    "Sink",
    "StreamSink",
    "SocketSink",
    "connect",
    "parse_tcp_url",
    # events
    "ChannelEvent",
    "ChannelEventBus",
    "ChannelState",
    "channel_events",
    # constants
    "BROKEN_CONNECTION",
    "DEFAULT",
    "RECONNECT_INTERVAL",
]
