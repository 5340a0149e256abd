import logging
import os


def configure_logging(level: str = None, verbose: bool = False) -> None:
    """Configure root logging for the worker.

    - `level`: string like 'INFO' or 'DEBUG'. If None, will use env LOG_LEVEL or 'INFO'.
    - `verbose`: if True, the pow_worker loggers emit per-share and progress debug lines.
    """
    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    level_const = getattr(logging, level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level_const)

    # Ensure a StreamHandler exists
    has_stream = any(isinstance(h, logging.StreamHandler) for h in root.handlers)
    if not has_stream:
        sh = logging.StreamHandler()
        sh.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        root.addHandler(sh)

    if verbose:
        logging.getLogger("pow_worker").setLevel(logging.DEBUG)
