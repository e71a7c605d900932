"""
Run logs for publishing commands.

Each command collects the messages of one run and writes them as a
markdown file next to the other run logs, so an operator can see what the
last run decided without scrolling back through stderr.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .infra.file_writer import write_file


class RunLog:
    """
    Collects the messages of a single run.

    Messages are forwarded to ``logger`` as they arrive.

    Example:
        log = RunLog(logger)
        log("=== Publishing types-registry ===")
        log.write(Path("logs"), "publish-registry.md")
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.lines: List[str] = []

    def __call__(self, message: str) -> None:
        self.lines.append(message)
        self.logger.info(message)

    def extend(self, messages: List[str]) -> None:
        """Record messages in the log file only."""
        self.lines.extend(messages)

    def result(self) -> str:
        return "\n".join(self.lines) + "\n"

    def write(self, logs_dir: Path, filename: str) -> Path:
        path = Path(logs_dir) / filename
        write_file(path, self.result())
        return path
