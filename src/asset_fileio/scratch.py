from __future__ import annotations

import os
import sys
import tempfile
import threading
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol

from asset_fileio.config import ConfigError, get_settings
from asset_fileio.errors import CreateFailure, ScratchStateError, ShortWrite
from asset_fileio.utils.log import logger

# Process-local name counter for hosts without a shared temp dir.
_counter = 0
_counter_lock = threading.Lock()


def _next_counter() -> int:
    global _counter
    with _counter_lock:
        n = _counter
        _counter += 1
    return n


def _remove(path: str) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except OSError as ex:
        logger.debug("scratch_cleanup_failed", op="remove", path=path, error=str(ex))


def _close(fd: int, path: str) -> None:
    if fd < 0:
        return
    try:
        os.close(fd)
    except OSError as ex:
        logger.debug("scratch_cleanup_failed", op="close", path=path, error=str(ex))


class ScratchFactory(Protocol):
    """
    Creates a uniquely-named scratch file and returns `(fd, path)`.

    Implementations must create atomically (fail if the name exists) and raise
    `CreateFailure` when no descriptor could be obtained.
    """

    name: str

    def create(self, suffix: str) -> tuple[int, str]: ...

    def release(self, fd: int, path: str) -> None:
        """Remove and close a file from `create`; best-effort, never raises."""
        ...


@dataclass(frozen=True, slots=True)
class MkstempFactory:
    directory: Path | None = None
    prefix: str = "assetpack-"
    name: str = "mkstemp"
    # Windows refuses to unlink a file that still has an open handle.
    close_before_remove: bool = os.name == "nt"

    def create(self, suffix: str) -> tuple[int, str]:
        d = str(self.directory) if self.directory else None
        try:
            fd, path = tempfile.mkstemp(prefix=self.prefix, suffix=suffix, dir=d)
        except OSError as ex:
            where = d or tempfile.gettempdir()
            raise CreateFailure(f"Could not create scratch file in {where}: {ex}", path=where) from ex
        return fd, path

    def release(self, fd: int, path: str) -> None:
        if self.close_before_remove:
            _close(fd, path)
            _remove(path)
        else:
            _remove(path)
            _close(fd, path)


@dataclass(frozen=True, slots=True)
class CounterFactory:
    """
    Counter-based names (`<prefix>temp-<n><suffix>`), relative to the working
    directory unless `directory` is set.
    """

    directory: Path | None = None
    prefix: str = "assetpack-"
    max_attempts: int = 100
    name: str = "counter"

    def create(self, suffix: str) -> tuple[int, str]:
        flags = os.O_RDWR | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
        path = ""
        last_exc: OSError | None = None
        for _ in range(max(1, int(self.max_attempts))):
            fname = f"{self.prefix}temp-{_next_counter()}{suffix}"
            path = os.path.join(str(self.directory), fname) if self.directory else fname
            try:
                return os.open(path, flags, 0o600), path
            except FileExistsError as ex:
                last_exc = ex
                continue
            except OSError as ex:
                raise CreateFailure(f"Could not create scratch file {path}: {ex}", path=path) from ex
        raise CreateFailure(
            f"Could not find a free scratch name after {self.max_attempts} attempts", path=path
        ) from last_exc

    def release(self, fd: int, path: str) -> None:
        _remove(path)
        _close(fd, path)


def default_factory() -> ScratchFactory:
    s = get_settings()
    strategy = str(s.scratch_strategy or "auto").strip().lower()
    if strategy == "auto":
        strategy = "counter" if sys.platform == "wasi" else "mkstemp"
    if strategy == "mkstemp":
        return MkstempFactory(directory=s.temp_dir, prefix=str(s.temp_prefix))
    if strategy == "counter":
        return CounterFactory(
            directory=s.temp_dir,
            prefix=str(s.temp_prefix),
            max_attempts=int(s.scratch_max_attempts),
        )
    raise ConfigError(f"Unknown scratch strategy: {strategy!r}")


class ScopedTempFile:
    """
    Owns one scratch file and its open descriptor; both are released on cleanup.

    Usage:
        with ScopedTempFile(".glb") as tmp:
            tmp.write_bytes(blob)
            run_tool(tmp.path)
        # file is gone here, even if run_tool raised

    `create()` may be called once per instance. Cleanup is best-effort: removal and
    close failures are logged, never raised.
    """

    def __init__(self, suffix: str | None = None, *, factory: ScratchFactory | None = None) -> None:
        self.path = ""
        self.fd = -1
        self._factory = factory
        self._created = False
        self._releaser: ScratchFactory | None = None
        if suffix is not None:
            self.create(suffix)

    def __enter__(self) -> ScopedTempFile:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def __del__(self) -> None:
        with suppress(Exception):
            self.cleanup()

    def __fspath__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"ScopedTempFile(path={self.path!r}, fd={self.fd})"

    def create(self, suffix: str = "") -> str:
        if self._created or self.path or self.fd >= 0:
            raise ScratchStateError(f"Scratch file already created: {self.path!r}")
        factory = self._factory or default_factory()
        self._created = True
        try:
            fd, path = factory.create(str(suffix))
        except CreateFailure as ex:
            logger.warning("scratch_create_failed", strategy=factory.name, error=str(ex), path=ex.path)
            raise
        self.fd = fd
        self.path = path
        self._releaser = factory
        logger.debug("scratch_created", strategy=factory.name, path=path)
        return path

    def write_bytes(self, data: bytes) -> int:
        """
        Replace the scratch file's content with `data` through the owned descriptor.
        """
        if self.fd < 0:
            raise ScratchStateError("Scratch file not created")
        view = memoryview(data).cast("B")
        try:
            os.ftruncate(self.fd, 0)
            os.lseek(self.fd, 0, os.SEEK_SET)
            written = 0
            while written < len(view):
                n = os.write(self.fd, view[written:])
                if n <= 0:
                    break
                written += n
        except OSError as ex:
            raise ShortWrite(f"Write to scratch file failed: {ex}", path=self.path) from ex
        if written != len(view):
            raise ShortWrite(
                f"Short write to scratch file ({written} of {len(view)} bytes)", path=self.path
            )
        return written

    def cleanup(self) -> None:
        path, fd, releaser = self.path, self.fd, self._releaser
        self.path, self.fd, self._releaser = "", -1, None
        if releaser is not None:
            releaser.release(fd, path)


@contextmanager
def scratch_file(suffix: str = "", *, factory: ScratchFactory | None = None) -> Iterator[ScopedTempFile]:
    tmp = ScopedTempFile(factory=factory)
    try:
        tmp.create(suffix)
        yield tmp
    finally:
        tmp.cleanup()
