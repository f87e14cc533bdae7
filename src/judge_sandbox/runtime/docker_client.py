from __future__ import annotations
from functools import wraps
from typing import Dict, List, Optional

import docker
import requests
from docker import errors

from ..core.errors import RuntimeFailure, RuntimePathNotFound
from ..core.models import ExecState
from .client import RuntimeClient

# daemon unreachable shows up as requests errors, not DockerException
_TRANSPORT_ERRORS = (errors.DockerException, requests.exceptions.RequestException)


def _wrap(fn):
    @wraps(fn)
    def inner(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (RuntimeFailure, RuntimePathNotFound):
            raise
        except _TRANSPORT_ERRORS as e:
            raise RuntimeFailure(f"{fn.__name__}: {e}") from e
    return inner


class DockerRuntimeClient(RuntimeClient):
    """RuntimeClient over the low-level docker SDK (docker.APIClient)."""

    def __init__(self, api: Optional[docker.APIClient] = None, *, base_url: Optional[str] = None, timeout: int = 60):
        if api is None:
            if base_url:
                api = docker.APIClient(base_url=base_url, timeout=timeout)
            else:
                api = docker.from_env(timeout=timeout).api
        self.api = api

    @classmethod
    def from_settings(cls, settings) -> "DockerRuntimeClient":
        return cls(base_url=settings.docker_base_url, timeout=settings.docker_timeout_s)

    # ------------ images ------------

    @_wrap
    def image_exists(self, name: str) -> bool:
        try:
            self.api.inspect_image(name)
            return True
        except errors.ImageNotFound:
            return False

    @_wrap
    def pull_image(self, name: str) -> None:
        # blocks until the daemon finishes; presence is confirmed by inspect afterwards
        self.api.pull(name)

    # ------------ containers ------------

    @_wrap
    def create_container(self, image: str, network_mode: str, binds: Dict[str, Dict[str, str]]) -> str:
        host_config = self.api.create_host_config(network_mode=network_mode, binds=binds)
        res = self.api.create_container(image=image, host_config=host_config, network_disabled=(network_mode == "none"))
        return res["Id"]

    @_wrap
    def start_container(self, container_id: str) -> None:
        self.api.start(container_id)

    @_wrap
    def remove_container(self, container_id: str, force: bool = True) -> None:
        self.api.remove_container(container_id, force=force)

    # ------------ files ------------

    @_wrap
    def put_archive(self, container_id: str, path: str, data: bytes) -> None:
        if not self.api.put_archive(container_id, path, data):
            raise RuntimeFailure(f"put_archive to {path} rejected by daemon")

    @_wrap
    def get_archive(self, container_id: str, path: str) -> bytes:
        try:
            stream, _stat = self.api.get_archive(container_id, path)
        except errors.NotFound as e:
            # 404 covers both a missing container and a missing path
            if "no such container" in str(e.explanation or e).lower():
                raise RuntimeFailure(f"container {container_id} is gone") from e
            raise RuntimePathNotFound(path) from e
        return b"".join(stream)

    # ------------ exec ------------

    @_wrap
    def exec_create(self, container_id: str, argv: List[str], attach_stdout: bool = True, attach_stderr: bool = True) -> str:
        res = self.api.exec_create(container_id, argv, stdout=attach_stdout, stderr=attach_stderr)
        return res["Id"]

    @_wrap
    def exec_start(self, exec_id: str) -> None:
        # Started detached even though exec_create attached stdout/stderr:
        # the streams are never read, the verdict comes from the result file
        # and completion from exec_inspect.
        self.api.exec_start(exec_id, detach=True)

    @_wrap
    def exec_inspect(self, exec_id: str) -> ExecState:
        data = self.api.exec_inspect(exec_id)
        return ExecState(running=bool(data.get("Running")), exit_code=data.get("ExitCode"))

    def ping(self) -> bool:
        try:
            return bool(self.api.ping())
        except _TRANSPORT_ERRORS:
            return False
