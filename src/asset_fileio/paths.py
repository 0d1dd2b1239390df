from __future__ import annotations

import os
import string

# Both separators are honoured regardless of host OS.
SEPARATORS = "/\\"

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def _last_separator(s: str) -> int:
    return max(s.rfind(sep) for sep in SEPARATORS)


def directory_of(path: str | os.PathLike[str]) -> str:
    """
    Directory component of `path`, including the trailing separator ("" if none).
    """
    s = os.fspath(path)
    slash = _last_separator(s)
    return s[: slash + 1] if slash >= 0 else ""


def resolve_sibling(relative_path: str | os.PathLike[str], base_path: str | os.PathLike[str]) -> str:
    """
    Resolve `relative_path` next to `base_path`:

      resolve_sibling("b.bin", "/a/dir/c.gltf") == "/a/dir/b.bin"
      resolve_sibling("b.bin", "justname.gltf") == "b.bin"
    """
    return directory_of(base_path) + os.fspath(relative_path)


def base_name(path: str | os.PathLike[str]) -> str:
    """
    File name without directory and without its last extension.
    """
    s = os.fspath(path)
    slash = _last_separator(s)
    if slash >= 0:
        s = s[slash + 1 :]
    dot = s.rfind(".")
    if dot >= 0:
        s = s[:dot]
    return s


def extension(path: str | os.PathLike[str]) -> str:
    """
    Lower-cased extension including the leading dot; "" when the file name has none.

    A dot inside a directory segment ("/a.b/dir/c") is not an extension marker.
    Only ASCII letters are case-folded.
    """
    s = os.fspath(path)
    slash = _last_separator(s)
    dot = s.rfind(".")
    if dot < 0 or dot < slash:
        return ""
    return s[dot:].translate(_ASCII_LOWER)
