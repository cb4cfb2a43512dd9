import logging
from datetime import datetime
from pathlib import Path
from typing import Optional


def setup_logging(log_dir: Optional[Path], log_level: str = "INFO") -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"bjut-autologin-{datetime.now():%Y-%m-%d}.log"
        handlers.insert(0, logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # Connection pool chatter drowns the step-by-step login log at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
