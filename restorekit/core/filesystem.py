"""
File system utilities for RestoreKit.

This module provides:
- Lazy directory tree traversal that the consumer can stop at any point
- Atomic writes (temp file + rename)
- Persistent temporary directories for downloaded tools
"""

import errno
import os
import tempfile
from pathlib import Path
from typing import Callable, Iterator, Optional, Union


class FilesystemError(Exception):
    """Base exception for filesystem operation errors."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize path to absolute form with user home expanded.

    Args:
        path: Path to normalize

    Returns:
        Absolute path

    Example:
        >>> normalize_path('~/project/../app.sln')
        PosixPath('/home/user/app.sln')
    """
    return Path(os.path.abspath(os.path.expanduser(str(path))))


# ============================================================================
# Directory Traversal
# ============================================================================


def iter_directories(
    root: Union[str, Path], include_root: bool = False
) -> Iterator[Path]:
    """
    Lazily walk the directory tree below root, depth-first.

    Directories are yielded before their children are listed, so a consumer
    that stops iterating (break, next(), close()) after a match never reads
    the matched subtree. Entries are visited in name order. Symlinked
    directories are yielded but not descended into.

    Args:
        root: Directory to walk
        include_root: Yield root itself first

    Yields:
        Path of every directory below root

    Raises:
        OSError: If root or any directory below it cannot be listed
    """
    root = Path(root)
    if include_root:
        if not root.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(root))
        yield root

    stack = [iter(_list_subdirectories(root))]

    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue

        child = Path(entry.path)
        yield child

        # Listed only after the consumer asks for more
        if not entry.is_symlink():
            stack.append(iter(_list_subdirectories(child)))


def _list_subdirectories(directory: Path) -> list:
    with os.scandir(directory) as entries:
        return sorted(
            (entry for entry in entries if entry.is_dir()),
            key=lambda entry: entry.name,
        )


def find_directory(
    root: Union[str, Path], predicate: Callable[[Path], bool]
) -> Optional[Path]:
    """
    Return the first directory in the tree rooted at root matching
    predicate, or None. Root itself is checked first.

    The walk stops as soon as a match is found.

    Raises:
        OSError: If root is not a directory or part of the tree cannot be listed

    Example:
        >>> find_directory(Path('/src/app'), lambda p: p.name == 'packages')
        PosixPath('/src/app/packages')
    """
    walk = iter_directories(root, include_root=True)
    try:
        for path in walk:
            if predicate(path):
                return path
    finally:
        walk.close()
    return None


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def make_temp_dir(prefix: str = "restorekit_") -> Path:
    """
    Create a fresh temporary directory that outlives the current call.

    Unlike a context-managed temp dir, nothing removes it afterwards: the
    downloaded NuGet binary has to survive until the restore has run.

    Raises:
        FilesystemError: If the directory cannot be created
    """
    try:
        return Path(tempfile.mkdtemp(prefix=prefix))
    except OSError as e:
        raise FilesystemError(f"Failed to create temporary directory: {e}") from e


__all__ = [
    "FilesystemError",
    "normalize_path",
    "iter_directories",
    "find_directory",
    "atomic_write",
    "make_temp_dir",
]
