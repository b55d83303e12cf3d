from __future__ import annotations

import logging
import sys
from pathlib import Path


def setup_logging(
    *,
    log_dir: str | Path = "logs",
    console_level: int = logging.INFO,
) -> None:
    """
    Configure logging with:
    - Console handler on stderr
    - info.log: INFO and above
    - error.log: ERROR and above

    Call this ONCE, before the app starts serving.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    info_fh = logging.FileHandler(str(log_dir / "info.log"), encoding="utf-8")
    info_fh.setLevel(logging.INFO)
    info_fh.setFormatter(fmt)
    root.addHandler(info_fh)

    error_fh = logging.FileHandler(str(log_dir / "error.log"), encoding="utf-8")
    error_fh.setLevel(logging.ERROR)
    error_fh.setFormatter(fmt)
    root.addHandler(error_fh)

    logging.captureWarnings(True)

    # werkzeug logs every request itself; we already do that in app.py
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
