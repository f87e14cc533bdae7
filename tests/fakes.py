"""In-memory RuntimeClient used by the unit tests."""
from __future__ import annotations

import posixpath
from collections import Counter
from typing import Dict, List, Optional

from judge_sandbox.archive import codec
from judge_sandbox.core.errors import RuntimeFailure, RuntimePathNotFound
from judge_sandbox.core.models import ExecState, StagedFile
from judge_sandbox.runtime.client import RuntimeClient


class FakeRuntime(RuntimeClient):
    def __init__(
        self,
        *,
        image_present: bool = True,
        inspects_until_pulled: int = 1,
        exec_polls: int = 0,
        result_text: Optional[str] = "OK\n\n50\n2048",
        result_path: str = "/root/result.txt",
        result_hidden_reads: int = 0,
        outputs: Optional[Dict[str, bytes]] = None,
    ):
        self.image_present = image_present
        self.inspects_until_pulled = inspects_until_pulled
        self.exec_polls = exec_polls
        self.result_text = result_text
        self.result_path = result_path
        self.result_hidden_reads = result_hidden_reads
        self.outputs = outputs or {}

        self.calls: Counter = Counter()
        self.fail: Dict[str, Exception] = {}
        self.files: Dict[str, Dict[str, StagedFile]] = {}
        self.argv: List[List[str]] = []
        self.removed: List[str] = []
        self._pulled = False
        self._inspects_after_pull = 0
        self._exec_left: Dict[str, int] = {}
        self._exec_owner: Dict[str, str] = {}
        self._next = 0

    def _hit(self, name: str):
        self.calls[name] += 1
        if name in self.fail:
            raise self.fail[name]

    def _id(self, prefix: str) -> str:
        self._next += 1
        return f"{prefix}{self._next}"

    # ------------ images ------------

    def image_exists(self, name):
        self._hit("image_exists")
        if self.image_present:
            return True
        if self._pulled:
            self._inspects_after_pull += 1
            if self._inspects_after_pull >= self.inspects_until_pulled:
                self.image_present = True
                return True
        return False

    def pull_image(self, name):
        self._hit("pull_image")
        self._pulled = True

    # ------------ containers ------------

    def create_container(self, image, network_mode, binds):
        self._hit("create_container")
        self.last_create = {"image": image, "network_mode": network_mode, "binds": binds}
        cid = self._id("c")
        self.files[cid] = {}
        return cid

    def start_container(self, container_id):
        self._hit("start_container")

    def remove_container(self, container_id, force=True):
        self.removed.append(container_id)
        self._hit("remove_container")

    # ------------ files ------------

    def put_archive(self, container_id, path, data):
        self._hit("put_archive")
        for f in codec.unpack(data):
            self.files[container_id][posixpath.join(path, f.name)] = f

    def get_archive(self, container_id, path):
        self._hit("get_archive")
        if path == self.result_path and self.result_hidden_reads > 0:
            self.result_hidden_reads -= 1
            raise RuntimePathNotFound(path)
        f = self.files.get(container_id, {}).get(path)
        if f is None:
            raise RuntimePathNotFound(path)
        return codec.pack([StagedFile(posixpath.basename(path), f.mode, f.uid, f.gid, f.data)])

    # ------------ exec ------------

    def exec_create(self, container_id, argv, attach_stdout=True, attach_stderr=True):
        self._hit("exec_create")
        self.argv.append(list(argv))
        exec_id = self._id("e")
        self._exec_left[exec_id] = self.exec_polls
        self._exec_owner[exec_id] = container_id
        return exec_id

    def exec_start(self, exec_id):
        self._hit("exec_start")

    def exec_inspect(self, exec_id):
        self._hit("exec_inspect")
        if self._exec_left[exec_id] > 0:
            self._exec_left[exec_id] -= 1
            return ExecState(running=True)
        self._finish(self._exec_owner[exec_id])
        return ExecState(running=False, exit_code=0)

    def _finish(self, container_id):
        store = self.files[container_id]
        if self.result_text is not None and self.result_path not in store:
            store[self.result_path] = StagedFile("result.txt", 0o644, 0, 0, self.result_text.encode("utf-8"))
        for name, data in self.outputs.items():
            store.setdefault(posixpath.join("/sandbox", name), StagedFile(name, 0o644, 1111, 1111, data))


class StubRuntime(RuntimeClient):
    """get_archive answers from a fixed script of byte payloads / exceptions."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0

    def get_archive(self, container_id, path):
        self.calls += 1
        item = self.script.pop(0) if self.script else RuntimePathNotFound(path)
        if isinstance(item, Exception):
            raise item
        return item


def gone() -> RuntimeFailure:
    return RuntimeFailure("container c1 is gone")
