"""
Filesystem plumbing for the asset pipeline: scratch files, path helpers and
whole-file read/write/copy.
"""

from __future__ import annotations

from asset_fileio.errors import (
    CopyFailure,
    CreateFailure,
    EmptyFile,
    FileIOError,
    OpenFailure,
    ScratchStateError,
    ShortRead,
    ShortWrite,
)
from asset_fileio.paths import base_name, directory_of, extension, resolve_sibling
from asset_fileio.scratch import ScopedTempFile, scratch_file
from asset_fileio.transfer import copy_whole, read_whole, write_whole

__version__ = "0.1.0"

__all__ = [
    "CopyFailure",
    "CreateFailure",
    "EmptyFile",
    "FileIOError",
    "OpenFailure",
    "ScopedTempFile",
    "ScratchStateError",
    "ShortRead",
    "ShortWrite",
    "base_name",
    "copy_whole",
    "directory_of",
    "extension",
    "read_whole",
    "resolve_sibling",
    "scratch_file",
    "write_whole",
]
