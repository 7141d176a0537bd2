"""Trade history loading for the lending pool backtester.

Reads fill exports from CSV, parquet or Excel, validates the numeric and
time fields, classifies direction once, and returns time-sorted Trade
records. Rows that fail validation never reach the engine.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import pyarrow.parquet as pq

from config import DEFAULT_TIME_FORMAT
from engine.types import Direction, Trade

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"time", "coin", "dir", "px", "sz"}
OPTIONAL_COLUMNS = {"ntl", "fee", "closedpnl"}

# Checked in order, first substring hit wins
_DIRECTION_MARKERS = [
    ("Open Long", Direction.OPEN_LONG),
    ("Close Long", Direction.CLOSE_LONG),
    ("Open Short", Direction.OPEN_SHORT),
    ("Close Short", Direction.CLOSE_SHORT),
]


def classify_direction(text: str) -> Direction:
    """Map the free-text ``dir`` field to a Direction."""
    if not isinstance(text, str):
        return Direction.OTHER
    for marker, direction in _DIRECTION_MARKERS:
        if marker in text:
            return direction
    return Direction.OTHER


def read_raw(path: str | Path) -> pd.DataFrame:
    """Read a raw export into a DataFrame without any cleaning."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trade file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str)
    if suffix == ".parquet":
        return pq.read_table(path).to_pandas()
    if suffix in (".xlsx", ".xls"):
        # First sheet only, as formatted text
        return pd.read_excel(path, sheet_name=0, dtype=str)
    raise ValueError(f"Unsupported trade file type: {path.suffix}")


def validate_trades(df: pd.DataFrame) -> list[str]:
    """Validate a raw trade DataFrame and return list of issues found."""
    issues = []
    df = _normalize_columns(df)

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        issues.append(f"Missing columns: {sorted(missing)}")
        return issues

    for col in ("px", "sz"):
        values = pd.to_numeric(df[col], errors="coerce")
        n_bad = int(values.isna().sum())
        if n_bad > 0:
            issues.append(f"Found {n_bad} non-numeric values in '{col}'")
        n_neg = int((values < 0).sum())
        if n_neg > 0:
            issues.append(f"Found {n_neg} negative values in '{col}'")

    n_empty_coin = int(df["coin"].isna().sum())
    if n_empty_coin > 0:
        issues.append(f"Found {n_empty_coin} rows without a coin")

    return issues


def trades_from_dataframe(
    df: pd.DataFrame,
    time_format: str = DEFAULT_TIME_FORMAT,
    strict: bool = False,
) -> list[Trade]:
    """Convert a raw trade DataFrame into time-sorted Trade records.

    Rows with an unparseable time, a non-numeric or negative price/size,
    or no coin are dropped with a warning. With ``strict=True`` they raise
    ValueError instead.
    """
    df = _normalize_columns(df)
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}")

    clean = pd.DataFrame({
        "time": _parse_times(df["time"], time_format),
        "coin": df["coin"],
        "dir": df["dir"].fillna("").astype(str),
        "px": pd.to_numeric(df["px"], errors="coerce"),
        "sz": pd.to_numeric(df["sz"], errors="coerce"),
    })
    for col, target in (("ntl", "notional"), ("fee", "fee"), ("closedpnl", "closed_pnl")):
        if col in df.columns:
            clean[target] = pd.to_numeric(df[col], errors="coerce")
        else:
            clean[target] = np.nan

    bad = (
        clean["time"].isna()
        | clean["coin"].isna()
        | clean["px"].isna()
        | clean["sz"].isna()
        | (clean["px"] < 0)
        | (clean["sz"] < 0)
    )
    n_bad = int(bad.sum())
    if n_bad > 0:
        if strict:
            raise ValueError(f"Found {n_bad} malformed trade rows")
        logger.warning("Dropping %d malformed trade rows", n_bad)
        clean = clean[~bad]

    # Stable sort keeps file order for identical timestamps
    clean = clean.sort_values("time", kind="mergesort").reset_index(drop=True)

    trades = [
        Trade(
            time=row.time,
            instrument=str(row.coin).strip(),
            direction=classify_direction(row.dir),
            price=float(row.px),
            size=float(row.sz),
            notional=float(row.notional),
            fee=float(row.fee),
            closed_pnl=float(row.closed_pnl),
            raw_direction=row.dir,
        )
        for row in clean.itertuples(index=False)
    ]
    return trades


def load_trades(
    path: str | Path,
    time_format: str = DEFAULT_TIME_FORMAT,
    strict: bool = False,
) -> list[Trade]:
    """Load and normalize a trade history export."""
    raw = read_raw(path)
    trades = trades_from_dataframe(raw, time_format=time_format, strict=strict)
    logger.info("Loaded %d trades from %s", len(trades), path)
    return trades


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase and strip column names (``closedPnl`` -> ``closedpnl``)."""
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def _parse_times(values: pd.Series, time_format: str) -> pd.Series:
    """Parse timestamps with the export's fixed format; failures become NaT."""
    if pd.api.types.is_datetime64_any_dtype(values):
        return values
    return pd.to_datetime(values, format=time_format, errors="coerce")
