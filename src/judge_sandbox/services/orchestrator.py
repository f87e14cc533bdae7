from __future__ import annotations
import threading
from typing import Optional

import structlog

from ..core.errors import SandboxError
from ..core.models import Options, RunOutcome
from ..core.settings import Settings, load_settings
from ..core.utils import new_run_id
from ..core.waiting import Waiter
from ..runtime.client import RuntimeClient
from .collector import ResultCollector
from .invoker import ExecutionInvoker
from .provisioner import ImageProvisioner
from .session import ContainerSession, open_session
from .stager import FileStager

log = structlog.get_logger(__name__)


class Orchestrator:
    """
    One request/response cycle per run():
      ensure image -> create+start -> stage -> exec -> wait -> collect -> remove
    The runtime client is shared, everything else is per run.
    """

    def __init__(self, client: RuntimeClient, settings: Optional[Settings] = None):
        self.s = settings or load_settings()
        self.client = client
        self.images = ImageProvisioner(client, self.s)
        self.sessions = ContainerSession(client, self.s)
        self.stager = FileStager(client, self.s)
        self.invoker = ExecutionInvoker(client, self.s)
        self.collector = ResultCollector(client, self.s)

    def run(self, options: Options, cancel: Optional[threading.Event] = None) -> RunOutcome:
        waiter = Waiter(self.s.poll_interval_s, cancel=cancel)
        run_id = new_run_id()
        with structlog.contextvars.bound_contextvars(run_id=run_id):
            log.info("run_started", program=options.program, time_limit=options.time_limit,
                     memory_limit=options.memory_limit)
            try:
                outcome = self._run(options, waiter)
            except SandboxError as e:
                log.warning("run_failed", error_type=type(e).__name__, error=str(e))
                raise
            log.info("run_finished", status=outcome.result.status,
                     time_usage=outcome.result.time_usage, memory_usage=outcome.result.memory_usage)
            return outcome

    def _run(self, options: Options, waiter: Waiter) -> RunOutcome:
        self.images.ensure(self.s.image, waiter)
        waiter.check_cancelled("container")

        with open_session(self.sessions, self.s.image) as handle:
            self.stager.inject(handle, options.program, options.input_files)
            waiter.check_cancelled("exec")

            argv = self.invoker.build_argv(options)
            self.invoker.run(handle, argv, waiter, timeout_s=self.invoker.deadline_for(options))

            result = self.collector.fetch_result(handle, waiter)
            output_files = self.collector.fetch_output_files(handle, options.output_files)

        return RunOutcome(result=result, output_files=output_files)


def run_sandbox(options: Options, settings: Optional[Settings] = None,
                cancel: Optional[threading.Event] = None) -> RunOutcome:
    """Convenience entry point: Docker client from the environment, one run."""
    from ..runtime.docker_client import DockerRuntimeClient

    s = settings or load_settings()
    return Orchestrator(DockerRuntimeClient.from_settings(s), s).run(options, cancel=cancel)
