import logging
import signal
import sys

from src.core.config import load_config
from src.core.guardian import Guardian
from src.lifecycle.cleanup_scheduler import CleanupScheduler
from src.web.app import create_app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config()

    guardian = Guardian(config=config)

    cleanup_scheduler = CleanupScheduler(config)
    cleanup_scheduler.start()

    def signal_handler(_signum: int, _frame: object) -> None:
        logging.info("Received termination signal, shutting down...")
        guardian.cancel("shutdown")
        cleanup_scheduler.stop()
        sys.exit(0)

    _ = signal.signal(signal.SIGINT, signal_handler)
    _ = signal.signal(signal.SIGTERM, signal_handler)

    try:
        import uvicorn

        app = create_app(guardian)
        logging.info(f"Fall Guardian API on http://{config.web.host}:{config.web.port}")
        uvicorn.run(app, host=config.web.host, port=config.web.port, log_level="info")
    finally:
        cleanup_scheduler.stop()
        guardian.shutdown()


if __name__ == "__main__":
    main()
