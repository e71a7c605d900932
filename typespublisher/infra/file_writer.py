"""
File writing infrastructure for types-publisher.

Provides the small set of filesystem operations the generators need:
- Atomic writes (write to temp, then rename)
- JSON output with a fixed indent
- Emptying an output directory before regenerating it

Every operation fails fast: I/O errors propagate to the caller.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Union
import logging

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _write_atomic(path: Path, content: str) -> None:
    """Write text atomically using temp file and rename."""
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def write_file(path: PathLike, content: str) -> None:
    """
    Write a text file, creating parent directories as needed.

    Content is written verbatim (no newline translation) so generated
    bundles compare byte-for-byte with their installed copies.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    _write_atomic(path, content)


def write_json(path: PathLike, content: Any, indent: int = 4) -> None:
    """Write ``content`` as indented JSON."""
    write_file(path, json.dumps(content, indent=indent, ensure_ascii=False))


def read_json(path: PathLike) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def empty_dir(path: PathLike) -> Path:
    """
    Ensure ``path`` exists and contains nothing.

    Returns:
        The directory path
    """
    path = Path(path)
    if path.exists():
        for child in path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
    else:
        path.mkdir(parents=True)
    logger.debug(f"Emptied {path}")
    return path
