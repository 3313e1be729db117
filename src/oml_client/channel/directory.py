from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple

from loguru import logger

from ..errors import ConfigurationError
from ..log import verbose
from .channel import DEFAULT, RECONNECT_INTERVAL, Channel, Connector
from .events import ChannelEventBus
from .transport import connect

Key = Tuple[str, str]


class ChannelDirectory:
    """Channels keyed by ``(name, domain)``.

    A name declared for the default domain can serve any other domain: looking
    it up under a new domain creates a second channel to the same URL.
    """

    def __init__(
        self,
        *,
        connector: Connector = connect,
        reconnect_interval: float = RECONNECT_INTERVAL,
        events: Optional[ChannelEventBus] = None,
    ):
        self._connector = connector
        self._reconnect_interval = reconnect_interval
        self._events = events
        self._channels: Dict[Key, Channel] = {}
        self._lock = threading.RLock()
        self.default_domain: Optional[str] = None

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, key: Key) -> bool:
        return key in self._channels

    def channels(self) -> List[Channel]:
        with self._lock:
            return list(self._channels.values())

    def create(self, name: str, url: str, domain: str = DEFAULT) -> Channel:
        """Return the channel for ``(name, domain)``, opening it on first use."""
        key = (name, domain)
        with self._lock:
            channel = self._channels.get(key)
            if channel is not None:
                if channel.url != url:
                    raise ConfigurationError(
                        f"Channel '{name}' already defined with different url '{channel.url}'"
                    )
                return channel
            return self._create(key, url)

    def lookup(self, name: str = DEFAULT, domain: str = DEFAULT) -> Channel:
        key = (name, domain)
        with self._lock:
            channel = self._channels.get(key)
            if channel is not None:
                return channel
            if domain != DEFAULT:
                dc = self._channels.get((name, DEFAULT))
                if dc is not None:
                    if verbose():
                        logger.debug(f"Cloning channel '{name}' ({dc.url}) for domain '{domain}'")
                    return self._create(key, dc.url)
            raise ConfigurationError(f"Unknown channel '{name}' (domain '{domain}')")

    def close_all(self) -> None:
        """Close every channel (draining its queue) and forget them."""
        with self._lock:
            channels = list(self._channels.values())
            self._channels = {}
        for channel in channels:
            channel.close()

    def _create(self, key: Key, url: str) -> Channel:
        out = self._connector(url)
        channel = Channel(
            url,
            key[1],
            out,
            connector=self._connector,
            reconnect_interval=self._reconnect_interval,
            events=self._events,
        )
        self._channels[key] = channel
        if verbose():
            logger.debug(f"Created channel {key[0]}:{key[1]} -> {url}")
        return channel
