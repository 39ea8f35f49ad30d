from __future__ import annotations

import logging
import sys


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for the command line.

    With verbose, DEBUG and INFO records go to stdout. WARNING and above
    always go to stderr.
    Calling it again replaces the handlers installed before.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    formatter = logging.Formatter("%(levelname)s: %(name)s: %(message)s")

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.setLevel(logging.DEBUG)

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)
