"""Countdown tickers.

A ticker calls a callback once per interval until cancelled. Only one
schedule is live per ticker: ``start`` cancels the previous one first, and
every schedule carries a generation number so a worker that wakes up after
being superseded exits without firing.
"""
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class BackgroundTicker:
    """Ticks on the Socket.IO cooperative scheduler.

    ``socketio`` is a flask_socketio.SocketIO; its ``start_background_task``
    and ``sleep`` follow whatever async mode the server runs in.
    """

    def __init__(self, socketio, interval: float = 1.0, heartbeat: int = 0, label: str = ''):
        self.socketio = socketio
        self.interval = float(interval)
        self.heartbeat = int(heartbeat or 0)
        self.label = label
        self._generation = 0
        self._callback: Optional[TickCallback] = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        self.cancel()
        self._generation += 1
        self._callback = callback
        logger.info(f"[timer-set] session={self.label} generation={self._generation} interval={self.interval}s")
        self.socketio.start_background_task(self._worker, self._generation, callback)

    def cancel(self) -> None:
        if self._callback is None:
            return
        logger.info(f"[timer-cancel] session={self.label} generation={self._generation}")
        self._callback = None
        self._generation += 1

    def _worker(self, generation: int, callback: TickCallback) -> None:
        ticks = 0
        while True:
            self.socketio.sleep(self.interval)
            if generation != self._generation:
                return
            ticks += 1
            if self.heartbeat and ticks % self.heartbeat == 0:
                logger.info(f"[timer-heartbeat] session={self.label} generation={generation} ticks={ticks}")
            # A failing listener must not stop the countdown
            try:
                callback()
            except Exception:
                logger.exception(f"[timer-error] session={self.label} generation={generation} ticks={ticks}")


class ManualTicker:
    """Ticker driven by hand, for tests and TESTING apps.

    ``fire(n)`` delivers n ticks to the live schedule, stopping early if the
    callback cancels it.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = float(interval)
        self.starts = 0
        self.cancels = 0
        self._callback: Optional[TickCallback] = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        self.cancel()
        self.starts += 1
        self._callback = callback

    def cancel(self) -> None:
        if self._callback is None:
            return
        self.cancels += 1
        self._callback = None

    def fire(self, times: int = 1) -> int:
        """Deliver up to ``times`` ticks; return how many were delivered."""
        delivered = 0
        for _ in range(times):
            callback = self._callback
            if callback is None:
                break
            callback()
            delivered += 1
        return delivered
