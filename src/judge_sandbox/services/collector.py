from __future__ import annotations
from typing import Iterable, List

import structlog

from ..archive import codec
from ..core.errors import (
    ArchiveError, CollectionError, MalformedResultError,
    RuntimeFailure, RuntimePathNotFound, WaitTimeout,
)
from ..core.models import (
    ContainerHandle, FetchOutcome, NotYetAvailable, OutputFile,
    PermanentFailure, Ready, Result,
)
from ..core.settings import Settings
from ..core.utils import sandboxed_path
from ..core.waiting import Waiter
from ..runtime.client import RuntimeClient

log = structlog.get_logger(__name__)


class ResultCollector:
    """
    Reads files back out of the container.

    Completion of the exec does not mean the result file is already visible
    through get_archive, so a missing path or a short archive is a race to be
    retried, while a daemon fault (container gone, API error) is final.
    """

    def __init__(self, client: RuntimeClient, settings: Settings):
        self.client = client
        self.settings = settings

    def fetch_file(self, handle: ContainerHandle, path: str) -> FetchOutcome:
        attempts = self.settings.fetch_attempts
        for _ in range(attempts):
            try:
                data = self.client.get_archive(handle.container_id, path)
                files = codec.unpack(data)
            except (RuntimePathNotFound, ArchiveError):
                continue
            except RuntimeFailure as e:
                return PermanentFailure(cause=e)
            if files:
                return Ready(file=files[0])
        return NotYetAvailable(attempts=attempts)

    def fetch_result(self, handle: ContainerHandle, waiter: Waiter) -> Result:
        path = self.settings.result_path

        def _probe():
            outcome = self.fetch_file(handle, path)
            if isinstance(outcome, Ready):
                # the binary creates the file before writing the verdict
                if not outcome.file.data.strip():
                    log.debug("result_empty", container_id=handle.container_id)
                    return None
                return outcome.file
            if isinstance(outcome, PermanentFailure):
                raise CollectionError(f"result file {path} unreadable: {outcome.cause}") from outcome.cause
            log.debug("result_not_ready", container_id=handle.container_id, attempts=outcome.attempts)
            return None

        try:
            f = waiter.poll(_probe, self.settings.result_timeout_s, f"result file {path}")
        except WaitTimeout as e:
            raise CollectionError(str(e)) from e

        try:
            text = f.data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedResultError("result file is not valid UTF-8") from e
        return Result.parse(text)

    def fetch_output_files(self, handle: ContainerHandle, names: Iterable[str]) -> List[OutputFile]:
        out: List[OutputFile] = []
        for name in names:
            outcome = self.fetch_file(handle, sandboxed_path(self.settings.sandbox_root, name))
            if isinstance(outcome, Ready):
                out.append(OutputFile(name=name, data=outcome.file.data))
            elif isinstance(outcome, PermanentFailure):
                log.warning("output_file_failed", container_id=handle.container_id, name=name, error=str(outcome.cause))
                out.append(OutputFile(name=name, data=None, error=str(outcome.cause)))
            else:
                log.info("output_file_missing", container_id=handle.container_id, name=name)
                out.append(OutputFile(name=name, data=None))
        return out
