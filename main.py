#!/usr/bin/env python3
import asyncio, logging, signal, sys
from config.logging_config import configure
from config.app_config import settings
from taglogger.core.exceptions import ConfigurationError
from taglogger.orchestration import Supervisor
from taglogger.services import load_config

log = logging.getLogger("taglogger")


def _install_signal_handlers(supervisor: Supervisor) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, supervisor.request_shutdown)
        except (NotImplementedError, AttributeError, ValueError):
            # Windows: no loop signal handlers; hop back onto the loop ourselves
            signal.signal(signum, lambda *_: loop.call_soon_threadsafe(supervisor.request_shutdown))


async def async_main(config_path: str) -> None:
    devices = load_config(config_path)
    supervisor = Supervisor.from_config(
        devices,
        tick_seconds=settings.TICK_SECONDS,
        retry_seconds=settings.RETRY_SECONDS,
        request_timeout=settings.REQUEST_TIMEOUT,
    )
    _install_signal_handlers(supervisor)
    log.info("starting")
    await supervisor.run()
    log.info("everything closed")


def main() -> None:
    configure()
    config_path = sys.argv[1] if len(sys.argv) > 1 else settings.CONFIG_FILE
    try:
        asyncio.run(async_main(config_path))
    except ConfigurationError as e:
        sys.exit(f"configuration error: {e}")


if __name__ == "__main__":
    main()
