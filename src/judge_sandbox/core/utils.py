from __future__ import annotations
import posixpath, uuid


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def basename(name: str) -> str:
    # caller paths may come from Windows hosts too
    return posixpath.basename(name.replace("\\", "/"))


def sandboxed_path(sandbox_root: str, name: str) -> str:
    """/data/in.txt -> <sandbox_root>/in.txt; empty stays empty."""
    if not name:
        return ""
    return posixpath.join(sandbox_root, basename(name))
