from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .components import GeoCoordinate

ENV_PREFIX = "DELIVERY_SCANNER_"
DEFAULT_CONFIG_PATH = "config/scanner.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def _env(key: str) -> Optional[str]:
    v = os.getenv(key)
    return v.strip() if isinstance(v, str) and v.strip() else None


@dataclass(frozen=True)
class ScannerSettings:
    ocr_language: str = "eng"
    recognition_timeout: float = 30.0
    max_attempts: int = 3
    backoff_initial: float = 0.5
    backoff_factor: float = 2.0
    preview_chars: int = 200
    min_confidence: float = 0.0
    anchor_lat: float = 51.5074
    anchor_lng: float = -0.1278
    fuzzy_threshold: float = 90.0
    jitter_degrees: float = 0.05

    def __post_init__(self) -> None:
        if self.recognition_timeout <= 0:
            raise ValueError("recognition_timeout must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_initial < 0 or self.backoff_factor < 1:
            raise ValueError("backoff_initial must be >= 0 and backoff_factor >= 1")
        if self.preview_chars < 0:
            raise ValueError("preview_chars must not be negative")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError("min_confidence must be within [0, 1]")

    @property
    def anchor(self) -> GeoCoordinate:
        return GeoCoordinate(lat=self.anchor_lat, lng=self.anchor_lng)

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return self.backoff_initial * self.backoff_factor ** (attempt - 1)


def _coerce(name: str, raw: Any, target: type) -> Any:
    if isinstance(raw, bool):
        raise ValueError(f"invalid value for {name}: {raw!r}")
    if target is int and isinstance(raw, float) and not raw.is_integer():
        raise ValueError(f"{name} must be a whole number, got {raw!r}")
    try:
        return target(raw)
    except (TypeError, ValueError):
        raise ValueError(f"invalid value for {name}: {raw!r}") from None


def load_settings(config_path: Optional[str] = None) -> ScannerSettings:
    """
    Resolution order (highest -> lowest):
      1) Explicit function argument
      2) DELIVERY_SCANNER_CONFIG env var
      3) config/scanner.yaml
    A missing file leaves the defaults in place. Individual fields can be
    overridden via DELIVERY_SCANNER_<FIELD> env vars, e.g.
    DELIVERY_SCANNER_RECOGNITION_TIMEOUT=10.
    """
    cfg_path = (
        Path(config_path)
        if config_path
        else Path(_env(ENV_PREFIX + "CONFIG") or DEFAULT_CONFIG_PATH)
    )
    cfg = _read_yaml(cfg_path)

    known = {f.name: f for f in fields(ScannerSettings)}
    unknown = sorted(set(cfg) - set(known))
    if unknown:
        raise ValueError(f"unknown settings in {cfg_path}: {', '.join(unknown)}")

    defaults = ScannerSettings()
    values: Dict[str, Any] = {}
    for name in known:
        raw = _env(ENV_PREFIX + name.upper())
        if raw is None:
            raw = cfg.get(name)
        if raw is None:
            continue
        values[name] = _coerce(name, raw, type(getattr(defaults, name)))

    return replace(defaults, **values)
