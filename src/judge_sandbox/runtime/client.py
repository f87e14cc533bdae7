from __future__ import annotations
from typing import Dict, List

from ..core.models import ExecState


class RuntimeClient:
    """
    Primitive container operations the orchestrator is built on.

    Implementations raise RuntimePathNotFound when an in-container path is
    missing and RuntimeFailure for any other daemon-side fault. One instance
    is shared by concurrent runs, so it must not keep per-container state.
    """

    def image_exists(self, name: str) -> bool: ...
    def pull_image(self, name: str) -> None: ...

    def create_container(self, image: str, network_mode: str, binds: Dict[str, Dict[str, str]]) -> str: ...
    def start_container(self, container_id: str) -> None: ...
    def remove_container(self, container_id: str, force: bool = True) -> None: ...

    def put_archive(self, container_id: str, path: str, data: bytes) -> None: ...
    def get_archive(self, container_id: str, path: str) -> bytes: ...

    def exec_create(self, container_id: str, argv: List[str], attach_stdout: bool = True, attach_stderr: bool = True) -> str: ...
    def exec_start(self, exec_id: str) -> None: ...
    def exec_inspect(self, exec_id: str) -> ExecState: ...

    def ping(self) -> bool:
        return True
