from __future__ import annotations

import os
from typing import Any


class FileIOError(RuntimeError):
    """
    Base class for whole-file and scratch-file failures.

    `path` is the file the failing operation was working on.
    """

    def __init__(self, message: str, *, path: Any = "") -> None:
        super().__init__(message)
        self.path = os.fspath(path) if path else ""


class OpenFailure(FileIOError):
    pass


class EmptyFile(FileIOError):
    pass


class ShortRead(FileIOError):
    pass


class ShortWrite(FileIOError):
    pass


class CreateFailure(FileIOError):
    pass


class CopyFailure(FileIOError):
    pass


class ScratchStateError(RuntimeError):
    pass


__all__ = [
    "CopyFailure",
    "CreateFailure",
    "EmptyFile",
    "FileIOError",
    "OpenFailure",
    "ScratchStateError",
    "ShortRead",
    "ShortWrite",
]
