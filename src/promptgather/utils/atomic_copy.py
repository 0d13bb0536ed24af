"""All-or-nothing file writes: stage into a temp file, then ``os.replace``."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, BinaryIO

log = logging.getLogger("promptgather.atomic_copy")


class SourceReadError(OSError):
    """The matched file could not be opened or read."""


class DestinationWriteError(OSError):
    """The destination could not be written or replaced."""


def _staging_file(dst: Path):
    return tempfile.NamedTemporaryFile(
        "wb", dir=dst.parent, prefix=f".{dst.name}.", suffix=".tmp", delete=False
    )


def _copy_stream(src_fh: BinaryIO, src: Path, tmp_fh: BinaryIO) -> None:
    while True:
        try:
            chunk = src_fh.read(1024 * 1024)
        except OSError as exc:
            raise SourceReadError(exc.errno, f"Failed reading {src}: {exc.strerror or exc}", str(src)) from exc
        if not chunk:
            return
        tmp_fh.write(chunk)


def atomic_copy(src: Path | str, dst: Path | str) -> Path:
    """
    Copy ``src`` byte-for-byte to ``dst``, replacing any existing file.

    The bytes are staged in a hidden temp file next to ``dst`` and moved into
    place with ``os.replace`` once complete, so ``dst`` is either the old file
    or the full new copy. Timestamps and permission bits are carried over the
    same way ``shutil.copy2`` does.

    Raises:
        SourceReadError: ``src`` could not be opened or read.
        DestinationWriteError: the temp file or the final rename failed.
    """
    src, dst = Path(src), Path(dst)
    try:
        src_fh = open(src, "rb")
    except OSError as exc:
        raise SourceReadError(exc.errno, f"Cannot open {src}: {exc.strerror or exc}", str(src)) from exc

    tmp_path: Path | None = None
    try:
        with src_fh:
            try:
                tmp_fh = _staging_file(dst)
            except OSError as exc:
                raise DestinationWriteError(
                    exc.errno, f"Cannot create temp file in {dst.parent}: {exc.strerror or exc}", str(dst)
                ) from exc
            tmp_path = Path(tmp_fh.name)
            with tmp_fh:
                try:
                    _copy_stream(src_fh, src, tmp_fh)
                    tmp_fh.flush()
                    os.fsync(tmp_fh.fileno())
                except SourceReadError:
                    raise
                except OSError as exc:
                    raise DestinationWriteError(
                        exc.errno, f"Failed writing {dst}: {exc.strerror or exc}", str(dst)
                    ) from exc
        try:
            shutil.copystat(src, tmp_path)
        except OSError as exc:
            log.debug("Could not copy mode/mtime from %s to %s: %s", src, dst, exc)
        try:
            os.replace(tmp_path, dst)
        except OSError as exc:
            raise DestinationWriteError(
                exc.errno, f"Cannot replace {dst}: {exc.strerror or exc}", str(dst)
            ) from exc
        tmp_path = None
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
    return dst


def atomic_write_json(path: Path | str, payload: Any) -> Path:
    """Write ``payload`` as pretty-printed JSON through a temp file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = _staging_file(path)
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            tmp.write(json.dumps(payload, indent=2, sort_keys=True).encode("utf-8"))
            tmp.write(b"\n")
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path
