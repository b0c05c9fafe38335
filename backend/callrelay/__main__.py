"""Run the relay: `python -m callrelay`."""
import uvicorn

from callrelay.config.settings import settings


def main():
    # uvicorn owns SIGTERM/SIGINT: stop accepting, close the socket, run lifespan shutdown
    uvicorn.run(
        "callrelay.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        ws_ping_interval=settings.HEARTBEAT_INTERVAL_SEC,
        ws_ping_timeout=settings.HEARTBEAT_INTERVAL_SEC,
    )


if __name__ == "__main__":
    main()
