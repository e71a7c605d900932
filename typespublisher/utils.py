"""
Shared utility functions for types-publisher.

Directory comparison used to check an installed package against the
locally generated bundle.
"""

import difflib
from pathlib import Path
from typing import Callable, List, Optional

from .config import logger
from .exit_codes import DirectoryMismatch

IgnorePredicate = Callable[[str], bool]


def _never(_name: str) -> bool:
    return False


def _listing(directory: Path, ignore: IgnorePredicate) -> List[str]:
    return sorted(child.name for child in directory.iterdir() if not ignore(child.name))


def _file_diff(expected: Path, actual: Path) -> str:
    expected_bytes = expected.read_bytes()
    actual_bytes = actual.read_bytes()
    try:
        expected_lines = expected_bytes.decode('utf-8').splitlines(keepends=True)
        actual_lines = actual_bytes.decode('utf-8').splitlines(keepends=True)
    except UnicodeDecodeError:
        return f"Binary files {expected} and {actual} differ\n"

    diff = ''.join(difflib.unified_diff(
        expected_lines, actual_lines, fromfile=str(expected), tofile=str(actual)
    ))
    # Line-ending or trailing-newline only changes produce an empty unified diff
    return diff or f"Files {expected} and {actual} differ in whitespace or line endings\n"


def compare_directories(expected: Path, actual: Path, ignore: Optional[IgnorePredicate] = None) -> List[str]:
    """
    Recursively compare two directory trees.

    Args:
        expected: Directory holding the expected tree
        actual: Directory to check against it
        ignore: Called with each entry's name; True skips the entry (at any depth)

    Returns:
        One report chunk per difference; empty if the trees are equal
    """
    ignore = ignore or _never
    expected, actual = Path(expected), Path(actual)

    if not actual.is_dir():
        return [f"Missing directory: {actual}\n"]

    problems = []
    expected_names = _listing(expected, ignore)
    actual_names = _listing(actual, ignore)

    if expected_names != actual_names:
        problems.append(''.join(difflib.unified_diff(
            [name + '\n' for name in expected_names],
            [name + '\n' for name in actual_names],
            fromfile=f"{expected}/ (listing)",
            tofile=f"{actual}/ (listing)",
        )))

    for name in expected_names:
        if name not in actual_names:
            continue
        expected_child = expected / name
        actual_child = actual / name

        if expected_child.is_dir() != actual_child.is_dir():
            problems.append(f"{expected_child} and {actual_child} are not both directories\n")
        elif expected_child.is_dir():
            problems.extend(compare_directories(expected_child, actual_child, ignore))
        elif expected_child.read_bytes() != actual_child.read_bytes():
            problems.append(_file_diff(expected_child, actual_child))

    return problems


def assert_directories_equal(expected: Path, actual: Path, ignore: Optional[IgnorePredicate] = None) -> None:
    """
    Raise DirectoryMismatch unless both trees hold the same files.

    The exception's ``report`` carries a diff of every difference found.
    """
    problems = compare_directories(expected, actual, ignore)
    if problems:
        report = ''.join(problems)
        logger.debug(report)
        raise DirectoryMismatch(
            f"{actual} does not match {expected} ({len(problems)} difference(s))",
            report=report,
        )
