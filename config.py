"""Global configuration loader for the lending pool backtester."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, get_type_hints

import yaml

DEFAULT_TIME_FORMAT = "%d/%m/%Y - %H:%M:%S"


@dataclass
class PoolConfig:
    initial_balance: float = 100_000_000.0
    daily_interest_rate: float = 0.01


@dataclass
class BacktestConfig:
    target_instrument: str = ""


@dataclass
class DataConfig:
    trades_file: str = "data/trades.csv"
    time_format: str = DEFAULT_TIME_FORMAT
    output_dir: str = "output"


@dataclass
class SanitizeConfig:
    coins: list[str] = field(default_factory=list)
    size_tolerance: float = 0.0001


@dataclass
class Config:
    pool: PoolConfig = field(default_factory=PoolConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    data: DataConfig = field(default_factory=DataConfig)
    sanitize: SanitizeConfig = field(default_factory=SanitizeConfig)


def _build_nested(cls: type, raw: dict[str, Any]) -> Any:
    """Recursively build a dataclass from a dict."""
    if not isinstance(raw, dict):
        return raw
    dc_fields = getattr(cls, "__dataclass_fields__", {})
    # Use typing.get_type_hints to safely resolve string annotations
    try:
        resolved_hints = get_type_hints(cls)
    except Exception:
        resolved_hints = {}
    kwargs: dict[str, Any] = {}
    for key, val in raw.items():
        if key not in dc_fields:
            raise KeyError(f"Unknown config key '{key}' for {cls.__name__}")
        field_type = resolved_hints.get(key, dc_fields[key].type)
        if hasattr(field_type, "__dataclass_fields__") and isinstance(val, dict):
            kwargs[key] = _build_nested(field_type, val)
        elif val is None:
            # Empty YAML section, keep the dataclass default
            continue
        else:
            kwargs[key] = val
    return cls(**kwargs)


def load_config(path: str | Path = "config.yaml") -> Config:
    """Load configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        return Config()
    with open(path) as f:
        raw = yaml.safe_load(f)
    if not raw:
        return Config()
    return _build_nested(Config, raw)
