"""
Serialized actuator writes.

Actuator writes are fire-and-forget for the caller, but two writes to the same
actuator must never overlap. Each actuator gets a SerializedWriter holding at
most one pending value: if several values are submitted while a write is in
flight, only the latest one is written next.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

_EMPTY = object()

WriteFunction = Callable[[Any], Awaitable[None]]
FailureCallback = Callable[[str, Exception], None]


class SerializedWriter:
    """Latest-value-wins write queue of depth 1 for a single actuator."""

    def __init__(self, name: str, write: WriteFunction, on_failure: Optional[FailureCallback] = None):
        """
        Args:
            name: Actuator name used in logs and failure reports
            write: Coroutine function performing one write
            on_failure: Called with (name, exception) when a write raises
        """
        self.name = name
        self._write = write
        self._on_failure = on_failure
        self._pending: Any = _EMPTY
        self._task: Optional[asyncio.Task] = None
        self.logger = logging.getLogger(__name__)

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, value: Any) -> None:
        """Queue value for writing, replacing any value not yet written."""
        self._pending = value
        if not self.busy:
            self._task = asyncio.create_task(self._run())

    async def drain(self) -> None:
        """Wait until every submitted value has been written or has failed."""
        while self.busy:
            await self._task

    def discard(self) -> None:
        """Forget a pending value without writing it. An in-flight write still completes."""
        self._pending = _EMPTY

    async def _run(self) -> None:
        while self._pending is not _EMPTY:
            value, self._pending = self._pending, _EMPTY
            try:
                await self._write(value)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Write to {self.name} failed ({value!r}): {e}")
                if self._on_failure is not None:
                    self._on_failure(self.name, e)
