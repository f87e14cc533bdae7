from __future__ import annotations
from pathlib import Path
from typing import Iterable, List

import structlog

from ..archive import codec
from ..core.errors import ArchiveError, RuntimeClientError, StagingError
from ..core.models import ContainerHandle, InputFile, StagedFile
from ..core.settings import Settings
from ..core.utils import basename
from ..runtime.client import RuntimeClient

log = structlog.get_logger(__name__)

PROGRAM_MODE = 0o755


class FileStager:
    def __init__(self, client: RuntimeClient, settings: Settings):
        self.client = client
        self.settings = settings

    def read_program(self, program: str) -> bytes:
        try:
            return Path(program).read_bytes()
        except OSError as e:
            raise StagingError(f"cannot read program {program}: {e}") from e

    def build_entries(self, program: str, program_data: bytes, files: Iterable[InputFile]) -> List[StagedFile]:
        """
        Caller's files first, then the program. Every entry gets the sandbox
        uid/gid whatever it came with; names are flattened to their basename.
        """
        uid, gid = self.settings.uid, self.settings.gid
        entries = [
            StagedFile(name=basename(f.name), mode=f.mode, uid=uid, gid=gid, data=f.data)
            for f in files
        ]
        entries.append(StagedFile(name=basename(program), mode=PROGRAM_MODE, uid=uid, gid=gid, data=program_data))
        seen = set()
        for e in entries:
            if not e.name:
                raise StagingError("staged file with an empty name")
            if e.name in seen:
                raise StagingError(f"two staged files would both land at {e.name}")
            seen.add(e.name)
        return entries

    def inject(self, handle: ContainerHandle, program: str, files: Iterable[InputFile], dest: str = "") -> List[StagedFile]:
        dest = dest or self.settings.sandbox_root
        entries = self.build_entries(program, self.read_program(program), files)
        try:
            data = codec.pack(entries)
        except ArchiveError as e:
            raise StagingError(str(e)) from e
        try:
            self.client.put_archive(handle.container_id, dest, data)
        except RuntimeClientError as e:
            raise StagingError(f"upload to {dest} failed: {e}") from e
        log.info("files_staged", container_id=handle.container_id, dest=dest,
                 files=[e.name for e in entries], bytes=len(data))
        return entries
