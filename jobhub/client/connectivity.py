import asyncio
import inspect
import logging
import socket
from typing import Awaitable, Callable, List, Optional, Union


logger = logging.getLogger(__name__)

Listener = Callable[[], Union[None, Awaitable[None]]]


class ConnectivityMonitor:
    """Tracks whether the network is reachable and announces offline -> online transitions."""

    def __init__(
        self,
        host: str = "1.1.1.1",
        port: int = 53,
        timeout_s: float = 1.5,
        reachable: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self.online = True
        self._reachable = reachable or self._tcp_reachable
        self._listeners: List[Listener] = []

    def _tcp_reachable(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout_s):
                return True
        except OSError:
            return False

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def is_online(self) -> bool:
        return self.online

    async def check(self) -> bool:
        online = await asyncio.to_thread(self._reachable)
        was_online = self.online
        self.online = online

        if online and not was_online:
            logger.info("[net] Connectivity restored")
            for listener in list(self._listeners):
                result = listener()
                if inspect.isawaitable(result):
                    await result
        elif was_online and not online:
            logger.warning("[net] Connectivity lost (%s:%s unreachable)", self.host, self.port)
        return online

    async def watch(self, interval_s: float = 5.0, sleep=asyncio.sleep) -> None:
        """Re-check every interval_s until cancelled. Callers run it beside a fetch."""
        while True:
            await sleep(interval_s)
            await self.check()
