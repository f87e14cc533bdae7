from judge_sandbox.core.settings import DEFAULT_BINDS, Settings, load_settings


def test_defaults_without_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("SBX_IMAGE", raising=False)
    s = load_settings(tmp_path / "missing.yaml")
    assert s.image == "menci/docker-sandbox"
    assert (s.uid, s.gid) == (1111, 1111)
    assert s.result_path == "/root/result.txt"
    assert s.binds == DEFAULT_BINDS
    assert s.fetch_attempts == 10


def test_yaml_then_env(tmp_path, monkeypatch):
    conf = tmp_path / "sandbox.yaml"
    conf.write_text(
        "image: judge/sandbox:2\n"
        "sandbox_root: /box\n"
        "defaults:\n"
        "  poll_interval_s: 0.2\n"
        "  fetch_attempts: 3\n"
    )
    monkeypatch.setenv("SBX_FETCH_ATTEMPTS", "7")
    s = load_settings(conf)
    assert s.image == "judge/sandbox:2"
    assert s.sandbox_root == "/box"
    assert s.poll_interval_s == 0.2
    assert s.fetch_attempts == 7


def test_sandbox_conf_env_points_at_file(tmp_path, monkeypatch):
    conf = tmp_path / "other.yaml"
    conf.write_text("exec_path: /opt/sandbox\n")
    monkeypatch.setenv("SANDBOX_CONF", str(conf))
    assert load_settings().exec_path == "/opt/sandbox"


def test_non_mapping_yaml_is_ignored(tmp_path):
    conf = tmp_path / "sandbox.yaml"
    conf.write_text("- just\n- a list\n")
    assert load_settings(conf).image == Settings().image


def test_bind_spec_is_read_only():
    s = Settings(binds=["/lib", "/usr/bin"])
    assert s.bind_spec() == {
        "/lib": {"bind": "/lib", "mode": "ro"},
        "/usr/bin": {"bind": "/usr/bin", "mode": "ro"},
    }
