"""
Filesystem reconciliation for full deploys
"""
import errno
import shutil
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

from ...core.exceptions import ResourceBusyError, BuildError
from ...core.logging import get_logger

logger = get_logger(__name__)

_BUSY_ERRNOS = {errno.EBUSY, errno.ETXTBSY}
# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_BUSY_WINERRORS = {32, 33}


def is_busy_error(error: BaseException) -> bool:
    """Whether an OS error means another process holds the file"""
    if not isinstance(error, OSError):
        return False
    if getattr(error, "winerror", None) in _BUSY_WINERRORS:
        return True
    return error.errno in _BUSY_ERRNOS


@contextmanager
def busy_guard(action: str) -> Iterator[None]:
    """Re-raise locked-file OS errors as ResourceBusyError"""
    try:
        yield
    except OSError as e:
        if is_busy_error(e):
            raise ResourceBusyError(f"{action}: {e}") from e
        raise


def remove_path(path: Path) -> None:
    """Remove a file or directory tree if present"""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _same_file(source: Path, target: Path) -> bool:
    try:
        src_stat = source.stat()
        dst_stat = target.stat()
    except OSError:
        return False
    return src_stat.st_size == dst_stat.st_size and src_stat.st_mtime_ns == dst_stat.st_mtime_ns


def reconciling_sync(source: Path, target: Path, protected: Sequence[str] = ()) -> int:
    """
    Make target mirror source.

    Entries in target without a counterpart in source are deleted, except
    entries named in ``protected``, at any depth. Unchanged files (same
    size and mtime) are not copied again.

    Args:
        source: Source directory
        target: Target directory (created if missing)
        protected: Target entry names never deleted

    Returns:
        Number of files copied

    Raises:
        ResourceBusyError: If a target entry is locked
    """
    with busy_guard(f"Syncing {source} -> {target}"):
        return _reconcile(Path(source), Path(target), set(protected))


def _reconcile(source: Path, target: Path, protected: set) -> int:
    target.mkdir(parents=True, exist_ok=True)
    source_names = {entry.name for entry in source.iterdir()}

    for entry in target.iterdir():
        if entry.name in source_names or entry.name in protected:
            continue
        logger.debug(f"Removing stale entry: {entry}")
        remove_path(entry)

    copied = 0
    for entry in sorted(source.iterdir()):
        destination = target / entry.name
        if entry.is_dir():
            if destination.exists() and not destination.is_dir():
                destination.unlink()
            copied += _reconcile(entry, destination, protected)
        else:
            if destination.is_dir():
                shutil.rmtree(destination)
            if not _same_file(entry, destination):
                shutil.copy2(entry, destination)
                copied += 1
    return copied


def reset_directory(path: Path) -> None:
    """Delete and recreate a directory"""
    with busy_guard(f"Clearing {path}"):
        remove_path(path)
        path.mkdir(parents=True, exist_ok=True)


def install_archive(archive: Path, target_dir: Path) -> Path:
    """
    Replace a deployed application with a built archive.

    The archive is copied next to the target as '<target>.war'. The target
    directory is filled from the exploded build folder when the build left
    one beside the archive, otherwise by unpacking the archive.

    Returns:
        Path of the copied archive
    """
    archive_copy = target_dir.with_name(target_dir.name + archive.suffix)
    exploded = archive.with_suffix("")

    with busy_guard(f"Replacing {target_dir}"):
        remove_path(target_dir)
        remove_path(archive_copy)
        target_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(archive, archive_copy)

        if exploded.is_dir():
            shutil.copytree(exploded, target_dir)
        else:
            try:
                with zipfile.ZipFile(archive) as bundle:
                    bundle.extractall(target_dir)
            except zipfile.BadZipFile as e:
                raise BuildError(f"Archive is not a valid zip file: {archive}") from e

    return archive_copy
