import pytest

from judge_sandbox.core.errors import ProvisionError, RuntimeFailure
from judge_sandbox.core.waiting import Waiter
from judge_sandbox.services.provisioner import ImageProvisioner

from fakes import FakeRuntime


def test_present_image_is_not_pulled(settings, waiter):
    rt = FakeRuntime(image_present=True)
    prov = ImageProvisioner(rt, settings)
    prov.ensure(settings.image, waiter)
    prov.ensure(settings.image, waiter)
    assert rt.calls["pull_image"] == 0
    assert rt.calls["image_exists"] == 2


def test_absent_image_pulled_once_then_polled(settings, waiter):
    rt = FakeRuntime(image_present=False, inspects_until_pulled=4)
    ImageProvisioner(rt, settings).ensure(settings.image, waiter)
    assert rt.calls["pull_image"] == 1
    # one inspect before the pull, four while waiting
    assert rt.calls["image_exists"] == 5
    assert rt.image_present


def test_pull_error_is_provision_error(settings, waiter):
    rt = FakeRuntime(image_present=False)
    rt.fail["pull_image"] = RuntimeFailure("registry unreachable")
    with pytest.raises(ProvisionError) as ei:
        ImageProvisioner(rt, settings).ensure(settings.image, waiter)
    assert isinstance(ei.value.__cause__, RuntimeFailure)
    assert rt.calls["image_exists"] == 1


def test_stalled_pull_hits_deadline(settings):
    rt = FakeRuntime(image_present=False, inspects_until_pulled=10**9)
    settings = settings.model_copy(update={"image_pull_timeout_s": 0.05})
    with pytest.raises(ProvisionError, match="not ready"):
        ImageProvisioner(rt, settings).ensure(settings.image, Waiter(0.01))
    assert rt.calls["pull_image"] == 1


def test_inspect_failure_before_pull(settings, waiter):
    rt = FakeRuntime()
    rt.fail["image_exists"] = RuntimeFailure("daemon down")
    with pytest.raises(ProvisionError):
        ImageProvisioner(rt, settings).ensure(settings.image, waiter)
    assert rt.calls["pull_image"] == 0
