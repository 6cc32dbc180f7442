from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from .constants import LOGGER_NAME


def setup_logging(*, verbose: bool = False) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)

    # Already configured (e.g. several invocations in one test process).
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
