"""Console text summary for backtest results."""


from engine.backtester import BacktestResult
from engine.report import PoolReport

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WIDTH = 80
CURRENCY = "USDC"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _header_bar() -> str:
    """Return a full-width '=' border line."""
    return "=" * WIDTH


def _section_divider(label: str) -> str:
    """Return a section divider like: -- Label ------ (padded to WIDTH)."""
    prefix = f"-- {label} "
    remaining = WIDTH - len(prefix)
    return prefix + "-" * max(remaining, 0)


def _fmt_money(value: float) -> str:
    """Format as X,XXX.XX USDC."""
    return f"{value:,.2f} {CURRENCY}"


def _fmt_size(value: float) -> str:
    return f"{value:,.4f}"


def _row(label: str, value: str) -> str:
    return f"  {label:<32}{value}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_direction_counts(direction_counts: dict[str, int]) -> str:
    """Format the per-direction trade counts.

    Returns an empty string if *direction_counts* is empty.
    """
    if not direction_counts:
        return ""

    lines: list[str] = [_section_divider("Trades by Direction")]
    for direction, count in direction_counts.items():
        lines.append(_row(f"{direction}:", str(count)))
    return "\n".join(lines)


def format_report(report: PoolReport) -> str:
    """Format the pool and user totals as an aligned text block."""
    lines: list[str] = []

    lines.append(_section_divider("Pool"))
    lines.append(_row("Initial Pool Balance:", _fmt_money(report.initial_balance)))
    lines.append(_row("Final Pool Balance:", _fmt_money(report.final_balance)))
    lines.append(_row("Total Interest Earned by Pool:",
                      _fmt_money(report.total_interest_earned_by_pool)))
    lines.append(_row("Total Loss Borne by Pool:",
                      _fmt_money(report.total_loss_borne_by_pool)))
    lines.append(_row("Overall Profit:", _fmt_money(report.overall_profit)))

    lines.append(_section_divider("Users"))
    lines.append(_row("Total User Gross Profit:",
                      _fmt_money(report.total_user_gross_profit)))
    lines.append(_row("Total Interest Paid by Users:",
                      _fmt_money(report.total_interest_paid_by_users)))
    lines.append(_row("Total User Net Profit:",
                      _fmt_money(report.total_user_net_profit)))

    lines.append(_section_divider("Diagnostics"))
    lines.append(_row("Opens Rejected (liquidity):", str(report.opens_rejected)))
    lines.append(_row("Unmatched Close Size:", _fmt_size(report.over_close_size)))
    lines.append(_row("Positions Still Open:",
                      f"{report.open_positions} ({_fmt_size(report.open_size)})"))
    lines.append(_row("Lowest Pool Balance:", _fmt_money(report.min_balance)))
    lines.append(_row("Max Drawdown:", f"{report.max_drawdown_pct:.2f}%"))

    return "\n".join(lines)


def print_summary(result: BacktestResult) -> str:
    """Print a formatted backtest summary to the console and return the text."""
    report = result.report
    ts = result.timestamps
    lines: list[str] = []

    lines.append(_header_bar())
    lines.append(f"BACKTEST RESULTS FOR {report.instrument}".center(WIDTH))
    lines.append(_header_bar())
    lines.append("")

    start_str = ts[0].strftime("%Y-%m-%d %H:%M") if len(ts) > 0 else "N/A"
    end_str = ts[-1].strftime("%Y-%m-%d %H:%M") if len(ts) > 0 else "N/A"
    lines.append(_row("Period:", f"{start_str} -- {end_str}"))
    lines.append(_row("Trades processed:", str(report.trades_processed)))
    lines.append("")

    lines.append(format_report(report))

    counts_block = format_direction_counts(report.direction_counts)
    if counts_block:
        lines.append("")
        lines.append(counts_block)

    if report.trades_processed == 0:
        lines.append("")
        lines.append(f"  No trades found for {report.instrument}.")

    lines.append("")
    lines.append(_header_bar())

    text = "\n".join(lines)
    print(text)
    return text
