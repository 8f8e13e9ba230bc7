from __future__ import annotations

from dataclasses import dataclass
import os

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    delete_on_remove: bool = False
    reject_duplicate_deployers: bool = False
    kubectl_timeout: int = 60
    route_suffix: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            delete_on_remove=_env_flag("MSBROKER_DELETE_ON_REMOVE"),
            reject_duplicate_deployers=_env_flag("MSBROKER_REJECT_DUPLICATE_DEPLOYERS"),
            kubectl_timeout=_env_int("MSBROKER_KUBECTL_TIMEOUT", cls.kubectl_timeout),
            route_suffix=os.getenv("MSBROKER_ROUTE_SUFFIX") or None,
        )
