from __future__ import annotations

import os
import shutil
import stat
import sys
import uuid
from contextlib import contextmanager, suppress
from typing import BinaryIO, Callable, Iterator

from asset_fileio.config import ConfigError, get_settings
from asset_fileio.errors import (
    CopyFailure,
    EmptyFile,
    FileIOError,
    OpenFailure,
    ShortRead,
    ShortWrite,
)
from asset_fileio.utils.log import logger

_O_BINARY = getattr(os, "O_BINARY", 0)


def _fail(event: str, exc: FileIOError) -> FileIOError:
    logger.warning(event, path=exc.path, error=str(exc), kind=type(exc).__name__)
    return exc


@contextmanager
def _checked_open(path: str, mode: str, *, on_close_error: type[FileIOError]) -> Iterator[BinaryIO]:
    """
    Open `path` and close it on every exit path.

    A close error is raised as `on_close_error` only when the block itself succeeded.
    """
    try:
        fh = open(path, mode)
    except OSError as ex:
        raise _fail("file_open_failed", OpenFailure(f"Could not open {path} ({mode}): {ex}", path=path)) from ex
    ok = False
    try:
        yield fh
        ok = True
    finally:
        try:
            fh.close()
        except OSError as ex:
            if ok:
                raise _fail(
                    "file_close_failed", on_close_error(f"Closing {path} failed: {ex}", path=path)
                ) from ex
            logger.debug("file_close_failed", path=path, error=str(ex))


@contextmanager
def _checked_fd(path: str, flags: int, mode: int = 0o644) -> Iterator[int]:
    try:
        fd = os.open(path, flags | _O_BINARY, mode)
    except OSError as ex:
        raise _fail("file_open_failed", OpenFailure(f"Could not open {path}: {ex}", path=path)) from ex
    ok = False
    try:
        yield fd
        ok = True
    finally:
        try:
            os.close(fd)
        except OSError as ex:
            if ok:
                raise _fail("file_close_failed", CopyFailure(f"Closing {path} failed: {ex}", path=path)) from ex
            logger.debug("file_close_failed", path=path, error=str(ex))


def read_whole(path: str | os.PathLike[str]) -> bytes:
    """
    Read the whole file.

    Zero-length files raise `EmptyFile`: an empty asset is treated as unreadable, not
    as valid empty content.
    """
    p = os.fspath(path)
    with _checked_open(p, "rb", on_close_error=ShortRead) as fh:
        try:
            length = fh.seek(0, os.SEEK_END)
            fh.seek(0, os.SEEK_SET)
        except OSError as ex:
            raise _fail("file_read_failed", ShortRead(f"Could not size {p}: {ex}", path=p)) from ex
        if length <= 0:
            raise _fail("file_read_failed", EmptyFile(f"File is empty: {p}", path=p))
        try:
            data = fh.read(length)
        except OSError as ex:
            raise _fail("file_read_failed", ShortRead(f"Read of {p} failed: {ex}", path=p)) from ex
        if len(data) != length:
            raise _fail(
                "file_read_failed",
                ShortRead(f"Short read of {p} ({len(data)} of {length} bytes)", path=p),
            )
    logger.debug("file_read", path=p, bytes=length)
    return data


def _write_to(target: str, view: memoryview) -> int:
    with _checked_open(target, "wb", on_close_error=ShortWrite) as fh:
        try:
            n = fh.write(view)
        except OSError as ex:
            raise _fail("file_write_failed", ShortWrite(f"Write to {target} failed: {ex}", path=target)) from ex
        if n != len(view):
            raise _fail(
                "file_write_failed",
                ShortWrite(f"Short write to {target} ({n} of {len(view)} bytes)", path=target),
            )
    return n


def write_whole(path: str | os.PathLike[str], data: bytes, *, atomic: bool = False) -> int:
    """
    Write `data` to `path`, replacing any existing content. Returns the byte count.

    With `atomic=True` the bytes go to a sibling temp file which is then renamed over
    `path`; readers see either the old or the new content.
    """
    p = os.fspath(path)
    view = memoryview(data).cast("B")
    if not atomic:
        n = _write_to(p, view)
        logger.debug("file_written", path=p, bytes=n, atomic=False)
        return n

    tmp = f"{p}.{uuid.uuid4().hex[:12]}.tmp"
    try:
        n = _write_to(tmp, view)
        try:
            os.replace(tmp, p)
        except OSError as ex:
            raise _fail("file_write_failed", ShortWrite(f"Could not move {tmp} to {p}: {ex}", path=p)) from ex
    except FileIOError:
        with suppress(OSError):
            os.remove(tmp)
        raise
    logger.debug("file_written", path=p, bytes=n, atomic=True)
    return n


Copier = Callable[[int, int, int, int], int]


def _copy_sendfile(src_fd: int, dst_fd: int, size: int, chunk_size: int) -> int:
    total = 0
    while total < size:
        n = os.sendfile(dst_fd, src_fd, total, size - total)
        if n <= 0:
            break
        total += n
    return total


def _copy_stream(src_fd: int, dst_fd: int, size: int, chunk_size: int) -> int:
    # The wrappers borrow the descriptors; `_checked_fd` owns and closes them.
    with open(src_fd, "rb", closefd=False) as fsrc, open(dst_fd, "wb", closefd=False) as fdst:
        shutil.copyfileobj(fsrc, fdst, chunk_size)
    return os.fstat(dst_fd).st_size


_COPIERS: dict[str, Copier] = {
    "sendfile": _copy_sendfile,
    "stream": _copy_stream,
}


def copy_strategy() -> str:
    s = get_settings()
    name = str(s.copy_strategy or "auto").strip().lower()
    if name == "auto":
        name = "sendfile" if sys.platform.startswith("linux") and hasattr(os, "sendfile") else "stream"
    if name not in _COPIERS:
        raise ConfigError(f"Unknown copy strategy: {name!r}")
    if name == "sendfile" and not hasattr(os, "sendfile"):
        raise ConfigError("Copy strategy 'sendfile' is not available on this platform")
    return name


def copy_whole(src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> int:
    """
    Copy `src` to `dst` byte-for-byte (creating or truncating `dst`). Returns the byte count.

    The transferred count is checked against the source size and every handle's close
    status is checked; any mismatch raises `CopyFailure`. A non-regular source or a
    destination that is the source file itself is refused before `dst` is touched.
    """
    s, d = os.fspath(src), os.fspath(dst)
    strategy = copy_strategy()
    copier = _COPIERS[strategy]
    chunk_size = int(get_settings().copy_chunk_size)

    with _checked_fd(s, os.O_RDONLY) as src_fd:
        try:
            st = os.fstat(src_fd)
        except OSError as ex:
            raise _fail("file_copy_failed", CopyFailure(f"Could not stat {s}: {ex}", path=s)) from ex
        if not stat.S_ISREG(st.st_mode):
            raise _fail("file_copy_failed", CopyFailure(f"Not a regular file: {s}", path=s))
        # dst is truncated on open, so it must not be src (same path, hard link or symlink).
        try:
            dst_st = os.stat(d)
        except OSError:
            dst_st = None
        if dst_st is not None and (dst_st.st_dev, dst_st.st_ino) == (st.st_dev, st.st_ino):
            raise _fail("file_copy_failed", CopyFailure(f"{s} and {d} are the same file", path=d))
        size = st.st_size
        with _checked_fd(d, os.O_WRONLY | os.O_CREAT | os.O_TRUNC) as dst_fd:
            try:
                copied = copier(src_fd, dst_fd, size, chunk_size)
            except OSError as ex:
                raise _fail("file_copy_failed", CopyFailure(f"Copy {s} -> {d} failed: {ex}", path=d)) from ex
            if copied != size:
                raise _fail(
                    "file_copy_failed",
                    CopyFailure(f"Incomplete copy {s} -> {d} ({copied} of {size} bytes)", path=d),
                )
    logger.debug("file_copied", src=s, dst=d, bytes=copied, strategy=strategy)
    return copied
