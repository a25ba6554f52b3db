"""
Base hardware abstraction for PostureUp.

The sensor feed and both actuators share one lifecycle: open before use,
close when the application shuts down. Both steps are idempotent and
serialized, so main can call shutdown() from a signal path and a finally
block without double-closing a device.
"""

import asyncio
import structlog
from abc import ABC
from typing import Any, Awaitable, Callable, Dict, Optional


class BaseHardware(ABC):
    """
    Base class for device abstractions.

    Subclasses override _open() and _close() for device setup and release;
    both default to no-ops for devices that need neither.
    """

    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        self.config = config
        self.name = name or self.__class__.__name__
        self.logger = structlog.get_logger(hardware=self.name)
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the device. Calling it on an open device is a no-op."""
        await self._transition(True, self._open, "initialized")

    async def shutdown(self) -> None:
        """Close the device. Calling it on a closed device is a no-op."""
        await self._transition(False, self._close, "shut down")

    async def _transition(self, target: bool, step: Callable[[], Awaitable[None]], done: str) -> None:
        async with self._lock:
            if self._initialized == target:
                self.logger.debug(f"Hardware already {done}")
                return
            try:
                await step()
            except Exception as e:
                self.logger.error(f"Hardware could not be {done}: {e}")
                raise
            self._initialized = target
            self.logger.info(f"Hardware {done}")

    def is_initialized(self) -> bool:
        return self._initialized

    async def _open(self) -> None:
        pass

    async def _close(self) -> None:
        pass

    async def check_health(self) -> Dict[str, Any]:
        """
        Report whether the device is usable.

        Returns:
            Dictionary with name, initialized flag and status ("ok" or "offline")
        """
        return {
            "name": self.name,
            "initialized": self._initialized,
            "status": "ok" if self._initialized else "offline",
        }
