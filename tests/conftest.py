import pytest

from judge_sandbox.core.settings import Settings
from judge_sandbox.core.waiting import Waiter

from fakes import FakeRuntime


@pytest.fixture
def settings():
    return Settings(
        poll_interval_s=0.0,
        image_pull_timeout_s=2,
        result_timeout_s=0.5,
        exec_grace_s=1,
        unlimited_exec_timeout_s=2,
    )


@pytest.fixture
def waiter(settings):
    return Waiter(settings.poll_interval_s)


@pytest.fixture
def runtime():
    return FakeRuntime(outputs={"out.txt": b"hello"})


@pytest.fixture
def program(tmp_path):
    p = tmp_path / "a.out"
    p.write_bytes(b"\x7fELF-fake-binary")
    return str(p)
