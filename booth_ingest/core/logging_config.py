import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once per process (API worker or CLI)."""
    global _configured
    if _configured:
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # Provider SDK transports are chatty at DEBUG; keep them at WARNING.
    for name in ("urllib3", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)
    _configured = True
