"""Entrypoint: python -m care_chat"""
from __future__ import annotations

import uvicorn

from care_chat.config import settings
from care_chat.log import configure_logging


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "care_chat.app:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_config=None,
        # websocket keepalive is handled by the app-level heartbeat
        ws_ping_interval=None,
    )


if __name__ == "__main__":
    main()
