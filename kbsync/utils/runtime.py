# KBSync Runtime
# Cooperative cancellation, kill timer and hook callbacks for one run

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kbsync.errors import Interrupted
from kbsync.logger import SyncLogger


class HookEvent(str, Enum):
    """Events hook callbacks can be registered for."""

    ON_TIMEOUT = "on_timeout"


HookFunction = Callable[[], Awaitable[None]]


@dataclass
class HookCallback:
    """Registered hook."""

    event: HookEvent
    callback: HookFunction


class Runtime:
    """
    Cancellation token shared by the pipe, its worker, tasks and adapters.

    Long running steps call ``check()`` and unwind on ``Interrupted``.
    """

    def __init__(self, logger: Optional[SyncLogger] = None):
        self.logger = logger or SyncLogger()
        self._interrupted = False
        self._hooks: dict[HookEvent, list[HookCallback]] = {}
        self._kill_timer: Optional[asyncio.TimerHandle] = None

    @property
    def interrupted(self) -> bool:
        """Check if an interrupt was requested."""
        return self._interrupted

    def interrupt(self) -> None:
        """Request cooperative cancellation."""
        self._interrupted = True

    def check(self) -> None:
        """
        Raise if an interrupt was requested.

        Raises:
            Interrupted: If ``interrupt()`` has been called.
        """
        if self._interrupted:
            raise Interrupted()

    def reset(self) -> None:
        """Clear the interrupt flag."""
        self._interrupted = False

    def register_hook(self, event: HookEvent, callback: HookFunction) -> None:
        """Register an async callback for an event."""
        self._hooks.setdefault(event, []).append(HookCallback(event=event, callback=callback))

    async def trigger_event(self, event: HookEvent) -> None:
        """Run every callback of an event. A failing callback does not stop the others."""
        for hook in self._hooks.get(event, []):
            try:
                await hook.callback()
            except Exception as e:
                self.logger.error(f"Error running {event.value} callback - {e}")

    def start_kill_timer(self, lifetime_seconds: float) -> None:
        """
        Interrupt the run once the lifetime elapses.

        Must be called from within a running event loop.

        Args:
            lifetime_seconds: Seconds until interrupt.
        """
        self.stop_kill_timer()
        loop = asyncio.get_running_loop()
        self._kill_timer = loop.call_later(lifetime_seconds, self._on_timeout, lifetime_seconds)

    def stop_kill_timer(self) -> None:
        """Cancel the kill timer if one is pending."""
        if self._kill_timer is not None:
            self._kill_timer.cancel()
            self._kill_timer = None

    def _on_timeout(self, lifetime_seconds: float) -> None:
        self.logger.info(f"Sync did not finish in [{lifetime_seconds}] seconds. Stopping...")
        self._kill_timer = None
        self.interrupt()
