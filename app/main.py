"""Automation worker entry point.

Wiring only: logging, lifespan, signal handling. No business logic here
(SRP). See app.core.lifespan for what gets built and torn down.

Run with `python -m app.main` (or the `crm-automation-worker` script).
Settings are loaded inside run_worker() so tests can set env (and clear
the get_settings cache) before calling it.
"""

import asyncio
import contextlib
import signal

from app.core.lifespan import automation_lifespan
from app.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def run_worker(stop: asyncio.Event | None = None) -> int:
    """Run the automation worker until stop is set (SIGINT/SIGTERM by default).

    Returns the process exit code: 1 when the event bus listener was lost,
    so a supervisor restarts the worker, otherwise 0.
    """
    setup_logging()
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform (e.g. Windows event loops).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    listener_lost = asyncio.Event()

    def _on_listener_lost() -> None:
        listener_lost.set()
        stop.set()

    async with automation_lifespan() as runtime:
        runtime.event_bus.on_listener_lost(_on_listener_lost)
        logger.info(
            "Listening for domain events (event bus available=%s)",
            runtime.event_bus.is_available(),
        )
        await stop.wait()
        if listener_lost.is_set():
            logger.error("Event bus listener lost, shutting down")
        else:
            logger.info("Shutdown requested")
    return 1 if listener_lost.is_set() else 0


def main() -> None:
    """Console entry point."""
    raise SystemExit(asyncio.run(run_worker()))


if __name__ == "__main__":
    main()
