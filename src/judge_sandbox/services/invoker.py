from __future__ import annotations
import time
from typing import List, Optional

import structlog

from ..core.errors import ExecutionError, RuntimeClientError, WaitTimeout
from ..core.models import ContainerHandle, ContainerState, ExecState, Options
from ..core.settings import Settings
from ..core.utils import sandboxed_path
from ..core.waiting import Waiter
from ..runtime.client import RuntimeClient

log = structlog.get_logger(__name__)


class ExecutionInvoker:
    """Runs the enforcement binary inside the container and waits for it to exit."""

    def __init__(self, client: RuntimeClient, settings: Settings):
        self.client = client
        self.settings = settings

    def build_argv(self, options: Options) -> List[str]:
        root = self.settings.sandbox_root
        return [
            self.settings.exec_path,
            sandboxed_path(root, options.program),
            sandboxed_path(root, options.file_stdin),
            sandboxed_path(root, options.file_stdout),
            sandboxed_path(root, options.file_stderr),
            str(options.time_limit),
            str(options.time_limit_reserve),
            str(options.memory_limit),
            str(options.memory_limit_reserve),
            str(options.output_limit),
            str(options.process_limit),
            self.settings.result_path,
        ]

    def deadline_for(self, options: Options) -> float:
        # time limits are whole seconds; the binary kills at limit + reserve
        if options.time_limit:
            return options.time_limit + options.time_limit_reserve + self.settings.exec_grace_s
        return self.settings.unlimited_exec_timeout_s

    def run(self, handle: ContainerHandle, argv: List[str], waiter: Waiter, timeout_s: Optional[float] = None) -> ExecState:
        cid = handle.container_id
        try:
            exec_id = self.client.exec_create(cid, argv, attach_stdout=True, attach_stderr=True)
            self.client.exec_start(exec_id)
        except RuntimeClientError as e:
            raise ExecutionError(f"exec in {cid} failed: {e}") from e
        handle.exec_id = exec_id
        handle.state = ContainerState.EXEC_RUNNING

        started = time.monotonic()

        def _finished():
            try:
                st = self.client.exec_inspect(exec_id)
            except RuntimeClientError as e:
                raise ExecutionError(f"exec inspect in {cid} failed: {e}") from e
            return None if st.running else st

        try:
            state = waiter.poll(_finished, timeout_s, f"exec {exec_id}")
        except WaitTimeout as e:
            raise ExecutionError(str(e)) from e

        handle.state = ContainerState.EXEC_FINISHED
        log.info("exec_finished", container_id=cid, exec_id=exec_id,
                 exit_code=state.exit_code, elapsed_s=round(time.monotonic() - started, 3))
        return state
