"""Integration tests for the command-line entry point."""

import sys
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from main import main


def _write_config(tmp_path: Path, trades_file: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "pool:\n"
        "  initial_balance: 1000000\n"
        "backtest:\n"
        "  target_instrument: ETH\n"
        "data:\n"
        f"  trades_file: {trades_file.as_posix()}\n"
        f"  output_dir: {(tmp_path / 'output').as_posix()}\n"
    )
    return path


def test_backtest_command(tmp_path, raw_trades_df, capsys):
    trades_file = tmp_path / "trades.csv"
    raw_trades_df.to_csv(trades_file, index=False)
    config_path = _write_config(tmp_path, trades_file)
    fills_csv = tmp_path / "fills.csv"

    code = main([
        "--config", str(config_path), "backtest", "--fills-csv", str(fills_csv),
    ])

    assert code == 0
    out = capsys.readouterr().out
    assert "BACKTEST RESULTS FOR ETH" in out
    assert "Total User Gross Profit:" in out
    fills = pd.read_csv(fills_csv)
    assert len(fills) == 1
    assert fills.iloc[0]["interest"] == 20.0


def test_backtest_coin_override(tmp_path, raw_trades_df, capsys):
    trades_file = tmp_path / "trades.csv"
    raw_trades_df.to_csv(trades_file, index=False)
    config_path = _write_config(tmp_path, trades_file)

    assert main(["--config", str(config_path), "backtest", "--coin", "BTC"]) == 0
    assert "BACKTEST RESULTS FOR BTC" in capsys.readouterr().out


def test_sanitize_command(tmp_path, raw_trades_df):
    trades_file = tmp_path / "trades.csv"
    raw_trades_df.to_csv(trades_file, index=False)
    config_path = _write_config(tmp_path, trades_file)

    assert main(["--config", str(config_path), "sanitize", "--coins", "ETH"]) == 0

    out_dir = tmp_path / "output"
    assert (out_dir / "open_long_trades.csv").exists()
    assert (out_dir / "other_trades.csv").exists()
    assert len(pd.read_csv(out_dir / "open_short_trades.csv")) == 0
