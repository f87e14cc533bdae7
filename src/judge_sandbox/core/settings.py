from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BINDS = ["/lib", "/lib64", "/usr/lib", "/usr/lib64", "/usr/bin", "/usr/share"]


class Settings(BaseSettings):
    """Sandbox image layout and orchestration tunables.

    Env vars SBX_* win over conf/sandbox.yaml, which wins over the defaults here.
    """

    # ---- image / container layout ----
    image: str = "menci/docker-sandbox"
    uid: int = 1111
    gid: int = 1111
    sandbox_root: str = "/sandbox"
    exec_path: str = "/usr/sbin/sandbox"
    result_path: str = "/root/result.txt"
    network_mode: str = "none"
    binds: List[str] = Field(default_factory=lambda: list(DEFAULT_BINDS))

    # ---- polling ----
    poll_interval_s: float = 0.05
    fetch_attempts: int = Field(default=10, ge=1)
    image_pull_timeout_s: float = 300
    exec_grace_s: float = 10
    unlimited_exec_timeout_s: float = 600
    result_timeout_s: float = 10

    # ---- docker daemon ----
    docker_base_url: Optional[str] = None
    docker_timeout_s: int = 60

    log_level: str = "INFO"

    # env prefix SBX_*
    model_config = SettingsConfigDict(env_prefix="SBX_", extra="ignore")

    def bind_spec(self) -> Dict[str, Dict[str, str]]:
        """Host dir -> same path inside the container, read-only."""
        return {path: {"bind": path, "mode": "ro"} for path in self.binds}


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    # block "defaults" holds the polling knobs, flatten it
    defaults = data.pop("defaults", None) or {}
    if isinstance(defaults, dict):
        data.update(defaults)
    return data


def load_settings(conf_path: Optional[Path] = None) -> Settings:
    # 0) base from env SBX_*
    s = Settings()

    # 1) conf/sandbox.yaml (or SANDBOX_CONF)
    path = conf_path or Path(os.environ.get("SANDBOX_CONF", "conf/sandbox.yaml"))
    data = _read_yaml(path)

    # 2) YAML only fills what the environment left unset
    from_yaml = {
        k: v for k, v in data.items()
        if k in Settings.model_fields and k not in s.model_fields_set
    }
    from_env = {k: getattr(s, k) for k in s.model_fields_set}
    return Settings(**{**from_yaml, **from_env})
