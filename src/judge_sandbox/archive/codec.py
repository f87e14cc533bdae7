from __future__ import annotations

import io
import tarfile
import time
from typing import Iterable, List

from ..core.errors import ArchiveError
from ..core.models import StagedFile


def pack(files: Iterable[StagedFile]) -> bytes:
    """Encode files into an uncompressed tar stream, keeping order and owner/mode."""
    buf = io.BytesIO()
    now = int(time.time())
    try:
        with tarfile.open(fileobj=buf, mode="w", format=tarfile.GNU_FORMAT) as tar:
            for f in files:
                info = tarfile.TarInfo(name=f.name)
                info.size = len(f.data)
                info.mode = f.mode
                info.uid = f.uid
                info.gid = f.gid
                info.mtime = now
                tar.addfile(info, io.BytesIO(f.data))
    except (tarfile.TarError, ValueError, TypeError) as e:
        raise ArchiveError(f"cannot pack archive: {e}") from e
    return buf.getvalue()


def unpack(data: bytes) -> List[StagedFile]:
    """Decode a tar stream into regular files; directories and links are skipped."""
    out: List[StagedFile] = []
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tar:
            for member in tar.getmembers():
                if not member.isfile():
                    continue
                src = tar.extractfile(member)
                if src is None:
                    continue
                with src:
                    body = src.read()
                out.append(StagedFile(
                    name=member.name, mode=member.mode,
                    uid=member.uid, gid=member.gid, data=body,
                ))
    except (tarfile.TarError, EOFError) as e:
        raise ArchiveError(f"cannot unpack archive: {e}") from e
    return out
