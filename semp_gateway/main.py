"""
Gateway entrypoint: one registry, two listeners.

Builds the DeviceRegistry and HookNotifier once, hands the registry to the
SEMP and management app factories, and serves both apps concurrently with
uvicorn on a single asyncio loop. SIGTERM/SIGINT set a shared
asyncio.Event; both servers are then asked to exit and the notifier drains
its pending hook POSTs before the process ends.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-18: Drain notifier on a worker thread (STORY-014)
- 2026-10-17: Drain notifier on shutdown (STORY-011)
- 2026-10-16: Log config summary at startup (STORY-013)
- 2026-10-15: Initial creation (STORY-013)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import sys
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import uvicorn

from semp_gateway.api import create_api_app, create_semp_app
from semp_gateway.notifier import HookNotifier
from semp_gateway.registry import DeviceRegistry

if TYPE_CHECKING:
    from semp_gateway.config import GatewaySettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging for the gateway.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    uvicorn's own loggers propagate to it.

    Args:
        level: Root log level.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: GatewaySettings) -> None:
    """Log the effective configuration at startup."""
    logger.info(
        "SEMP gateway starting with config: "
        "gateway_host=%s, advertised_ip=%s, semp_port=%s, api_port=%s, "
        "gateway_uuid=%s, friendly_name=%s, hook_timeout_s=%s, "
        "hook_workers=%s, log_level=%s",
        settings.gateway_host,
        settings.advertised_ip,
        settings.semp_port,
        settings.api_port,
        settings.gateway_uuid,
        settings.friendly_name,
        settings.hook_timeout_s,
        settings.hook_workers,
        settings.log_level,
    )


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------


class _ManagedServer(uvicorn.Server):
    """uvicorn server whose shutdown is driven by the gateway, not signals.

    Two servers share one loop, so neither may install its own signal
    handlers.
    """

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def build_servers(
    registry: DeviceRegistry,
    settings: GatewaySettings,
) -> list[uvicorn.Server]:
    """Build the SEMP and management uvicorn servers for *registry*."""
    semp_app = create_semp_app(registry, settings)
    api_app = create_api_app(registry)
    return [
        _ManagedServer(
            uvicorn.Config(
                semp_app,
                host=settings.gateway_host,
                port=settings.semp_port,
                log_config=None,
            )
        ),
        _ManagedServer(
            uvicorn.Config(
                api_app,
                host=settings.gateway_host,
                port=settings.api_port,
                log_config=None,
            )
        ),
    ]


async def _stop_on_shutdown(
    servers: Sequence[uvicorn.Server],
    shutdown_event: asyncio.Event,
) -> None:
    await shutdown_event.wait()
    logger.info("Stopping %d listener(s)", len(servers))
    for server in servers:
        server.should_exit = True


async def run_servers(
    servers: Sequence[uvicorn.Server],
    shutdown_event: asyncio.Event,
) -> None:
    """Serve all *servers* concurrently until shutdown_event is set.

    Args:
        servers: uvicorn servers (or objects with ``serve()`` and
            ``should_exit``).
        shutdown_event: Event that asks every server to exit.
    """
    watcher = asyncio.create_task(_stop_on_shutdown(servers, shutdown_event))
    try:
        await asyncio.gather(*(server.serve() for server in servers))
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
    logger.info("All listeners stopped")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, serve.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    from semp_gateway.config import GatewaySettings

    settings = GatewaySettings()
    configure_logging(settings.log_level_value)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    notifier = HookNotifier(
        timeout_s=settings.hook_timeout_s,
        max_workers=settings.hook_workers,
    )
    registry = DeviceRegistry(notifier=notifier)

    try:
        await run_servers(build_servers(registry, settings), shutdown_event)
    finally:
        # Blocks until in-flight hook POSTs finish.
        await asyncio.to_thread(notifier.close)
        logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the gateway."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
