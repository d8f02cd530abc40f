"""Shared logging helpers for proxykeeper."""

from __future__ import annotations

import logging

# httpx logs every request line at INFO; keep that for DEBUG runs only.
_HTTP_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with a terse format.

    Gateway traffic and reconcile attempts are logged at DEBUG; pass
    ``level=logging.DEBUG`` to see every call made against the proxy.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
