from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator

import structlog

from ..core.errors import ContainerError, RuntimeClientError
from ..core.models import ContainerHandle, ContainerState
from ..core.settings import Settings
from ..runtime.client import RuntimeClient

log = structlog.get_logger(__name__)


class ContainerSession:
    """
    Lifecycle of the one container a run owns:
      create -> start -> (exec ...) -> remove
    """

    def __init__(self, client: RuntimeClient, settings: Settings):
        self.client = client
        self.settings = settings

    def create(self, image: str) -> ContainerHandle:
        try:
            cid = self.client.create_container(
                image,
                network_mode=self.settings.network_mode,
                binds=self.settings.bind_spec(),
            )
        except RuntimeClientError as e:
            raise ContainerError(f"create from {image} failed: {e}") from e
        log.info("container_created", container_id=cid, image=image)
        return ContainerHandle(container_id=cid)

    def start(self, handle: ContainerHandle) -> None:
        try:
            self.client.start_container(handle.container_id)
        except RuntimeClientError as e:
            raise ContainerError(f"start of {handle.container_id} failed: {e}") from e
        handle.state = ContainerState.STARTED

    def remove(self, handle: ContainerHandle) -> None:
        """Force-remove; failures are logged and never raised."""
        if handle.state == ContainerState.REMOVED:
            return
        try:
            self.client.remove_container(handle.container_id, force=True)
            log.info("container_removed", container_id=handle.container_id)
        except Exception as e:
            log.warning("container_remove_failed", container_id=handle.container_id, error=str(e))
        handle.state = ContainerState.REMOVED


@contextmanager
def open_session(session: ContainerSession, image: str) -> Iterator[ContainerHandle]:
    """Create+start a container and remove it on every way out of the block."""
    handle = session.create(image)
    try:
        session.start(handle)
        yield handle
    finally:
        session.remove(handle)
