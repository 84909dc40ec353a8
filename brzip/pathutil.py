from __future__ import annotations

import os


def norm_name(name: str) -> str:
    """Turn a stored entry name into a relative '/'-separated path.

    Names written on Windows may use backslashes, and a leading slash or
    ``./`` adds nothing under an output directory, so both are dropped. A
    ``..`` segment would escape the output directory and is refused.
    """
    segments = []
    for seg in name.replace("\\", "/").split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            raise ValueError(f"Entry name escapes the output directory: {name!r}")
        segments.append(seg)
    if not segments:
        raise ValueError(f"Entry name has no path segments: {name!r}")
    return "/".join(segments)


def destination_path(directory_path: str, name: str) -> str:
    """Map an entry name onto a filesystem path inside ``directory_path``."""
    return os.path.join(directory_path, *norm_name(name).split("/"))


def fold_name(name: str) -> str:
    # Index key for case-insensitive entry identity
    return name.lower()
