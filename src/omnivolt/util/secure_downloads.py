"""Utilities for safe downloads and archive extraction (bounded retries & path traversal protection)."""
from __future__ import annotations

import logging
import os
import random
import re
import shutil
import stat
import time
import zipfile
import zlib
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from omnivolt.exceptions import ArchiveError, FilesystemError, NetworkError

_log = logging.getLogger(__name__)

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def download_with_retries(
    url: str,
    dest: Path,
    fetch_fn: Callable[[str, Path], None],
    attempts: int = 1,
    backoff_base: float = 0.5,
) -> Path:
    """Download URL to dest, retrying network failures up to the given number of attempts.

    A partially written destination file is removed before each attempt and after the final failure.
    """
    last_err: NetworkError | None = None
    dest.parent.mkdir(parents=True, exist_ok=True)
    for attempt in range(1, attempts + 1):
        cleanup_path(dest)
        try:
            _log.debug("Downloading %s -> %s (attempt %d/%d)", url, dest, attempt, attempts)
            fetch_fn(url, dest)
            return dest
        except NetworkError as e:
            last_err = e
            if attempt < attempts:
                sleep_for = backoff_base * (2 ** (attempt - 1)) + random.uniform(0, 0.1)
                _log.warning("Download failed (%s). Retrying in %.2fs", e, sleep_for)
                time.sleep(sleep_for)
    cleanup_path(dest)
    if attempts == 1:
        raise last_err  # type: ignore[misc]
    raise NetworkError(f"Failed to download {url} after {attempts} attempts", last_err)


def safe_entry_path(target_dir: Path, entry_name: str) -> Path | None:
    """
    Maps an archive entry name to a path inside target_dir.

    :return: the destination path, or None if the entry would end up outside of target_dir
    """
    normalized = entry_name.replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PREFIX.match(normalized):
        return None
    parts = [p for p in PurePosixPath(normalized).parts if p not in ("", ".")]
    if not parts or ".." in parts:
        return None
    candidate = target_dir.joinpath(*parts)
    if not candidate.resolve().is_relative_to(target_dir.resolve()):
        return None
    return candidate


def _unix_mode(info: zipfile.ZipInfo) -> int | None:
    mode = info.external_attr >> 16
    if info.create_system != 3 or mode == 0 or stat.S_ISLNK(mode):
        return None
    return stat.S_IMODE(mode)


def safe_extract_zip(archive: Path, target_dir: Path, strict: bool = False) -> list[Path]:
    """Extract a zip archive into target_dir, preserving relative paths.

    Entries whose names would escape target_dir are skipped, or rejected with an ArchiveError if strict is set.
    Unix permission bits stored in the archive are restored.

    :return: the extracted files
    """
    extracted: list[Path] = []
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                dest = safe_entry_path(target_dir, info.filename)
                if dest is None:
                    if strict:
                        raise ArchiveError(f"Refusing to extract path-traversal entry: {info.filename}")
                    _log.warning("Skipping archive entry outside of the destination directory: %s", info.filename)
                    continue
                if info.is_dir():
                    dest.mkdir(parents=True, exist_ok=True)
                    continue
                dest.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(dest, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                mode = _unix_mode(info)
                if mode is not None:
                    os.chmod(dest, mode)
                extracted.append(dest)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError) as e:
        raise ArchiveError(f"Corrupt archive {archive}", e) from e
    except OSError as e:
        raise FilesystemError(f"Failed to extract {archive} to {target_dir}", e) from e
    _log.debug("Extracted %d files from %s to %s", len(extracted), archive, target_dir)
    return extracted


def make_executable(path: Path) -> None:
    try:
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise FilesystemError(f"Could not make {path} executable", e) from e


def remove_tree(p: Path) -> None:
    """Remove a file or directory tree; a missing path is not an error."""
    try:
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        elif p.exists() or p.is_symlink():
            p.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FilesystemError(f"Could not remove {p}", e) from e


def cleanup_path(p: Path) -> None:
    """Best-effort removal of a temporary file or directory."""
    try:
        remove_tree(p)
    except FilesystemError as e:
        _log.warning("Could not clean up %s: %s", p, e)
