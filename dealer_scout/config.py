# === FILE: dealer_scout/config.py ===
"""
Loading and validation of the DealerScout configuration.
Pydantic describes the schema; YAML/JSON files and environment
variables feed it.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from dealer_scout.keywords import (
    DEFAULT_KEYWORDS,
    DEFAULT_LINK_TRIGGERS,
    KeywordRegistry,
    normalize_phrases,
    parse_phrase_list,
)

__all__ = [
    "ScannerConfig",
    "SyncConfig",
    "load_config",
    "apply_env_overrides",
]


class ScannerConfig(BaseModel):
    """Settings for the dealer check service."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    keywords: tuple[str, ...] = Field(DEFAULT_KEYWORDS, description="Target phrases.")
    link_triggers: tuple[str, ...] = Field(
        DEFAULT_LINK_TRIGGERS, description="Substrings that make a homepage link worth following."
    )
    user_agent: str = Field("DealerScoutBot/1.0", min_length=1, description="User-Agent header.")
    probe_timeout: float = Field(8.0, gt=0, description="Timeout of one resolver probe (s).")
    liveness_timeout: float = Field(10.0, gt=0, description="Timeout of the liveness request (s).")
    fetch_timeout: float = Field(15.0, gt=0, description="Timeout of one page fetch (s).")
    render_timeout: float = Field(20.0, gt=0, description="Network-idle wait in the browser (s).")
    max_followups: int = Field(5, ge=0, le=5, description="Homepage links scanned after the homepage.")
    count_client_errors_as_live: bool = Field(True, description="Treat 4xx as a reachable site.")
    dedupe_links: bool = Field(False, description="Drop repeated candidate links before scanning.")
    same_host_only: bool = Field(False, description="Follow only links on the homepage host.")
    verbose: bool = Field(False, description="Keep negative page results in responses.")

    @field_validator("keywords", "link_triggers", mode="before")
    def _normalize_phrases(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            phrases = normalize_phrases(str(p) for p in v)
            if not phrases:
                raise ValueError("phrase list must not be empty")
            return phrases
        return v

    def registry(self) -> KeywordRegistry:
        """Build the immutable keyword registry for this configuration."""
        return KeywordRegistry(keywords=self.keywords, link_triggers=self.link_triggers)


class SyncConfig(BaseModel):
    """Credentials and endpoints of the CRM opportunity sync proxy."""
    model_config = ConfigDict(frozen=True)

    instance_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    username: str = ""
    password: str = ""
    security_token: str = ""
    confirm_url: Optional[str] = None
    timeout: float = Field(15.0, gt=0)

    @field_validator("instance_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @property
    def grant_password(self) -> str:
        return self.password + self.security_token

    @property
    def confirmation_url(self) -> str:
        return self.confirm_url or f"{self.instance_url}/apex/SyndicationConfirm"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
        env = os.environ if environ is None else environ
        return cls(
            instance_url=env.get("SF_INSTANCE_URL", ""),
            client_id=env.get("SF_CLIENT_ID", ""),
            client_secret=env.get("SF_CLIENT_SECRET", ""),
            username=env.get("SF_USERNAME", ""),
            password=env.get("SF_PASSWORD", ""),
            security_token=env.get("SF_SECURITY_TOKEN", ""),
            confirm_url=env.get("CONFIRM_URL") or None,
        )


_DEFAULT_CFG = Path("configs/default.yaml")
_TRUTHY = {"1", "true", "yes", "on"}


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def apply_env_overrides(
    cfg: ScannerConfig, environ: Optional[Mapping[str, str]] = None
) -> ScannerConfig:
    """Return *cfg* with ``CREDIT_KEYWORDS``, ``LINK_TRIGGERS`` and
    ``DEALER_SCOUT_VERBOSE`` applied on top."""
    env = os.environ if environ is None else environ
    updates: dict[str, Any] = {}

    keywords = parse_phrase_list(env.get("CREDIT_KEYWORDS"))
    if keywords:
        updates["keywords"] = keywords
    triggers = parse_phrase_list(env.get("LINK_TRIGGERS"))
    if triggers:
        updates["link_triggers"] = triggers
    verbose = env.get("DEALER_SCOUT_VERBOSE")
    if verbose is not None:
        updates["verbose"] = verbose.strip().lower() in _TRUTHY

    if not updates:
        return cfg
    # revalidate instead of model_copy(update=...), which skips validators
    return ScannerConfig(**{**cfg.model_dump(), **updates})


def load_config(
    path: Union[str, Path, None], environ: Optional[Mapping[str, str]] = None
) -> ScannerConfig:
    """
    Read YAML or JSON and return a validated ScannerConfig with environment
    overrides applied. Without *path*, ``configs/default.yaml`` is used when
    present and built-in defaults otherwise.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return apply_env_overrides(ScannerConfig(), environ)
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return apply_env_overrides(ScannerConfig(**data), environ)
