from rich.console import Console

from aptos_yield.domain import YieldAnalysis, YieldStrategy
from aptos_yield.report import build_strategy_table, format_analysis
from aptos_yield.report.formatter import _format_amount, _truncate_address

STRATEGY = YieldStrategy(
    protocol="Thala",
    token="APT",
    amount=12.5,
    estimated_apy=6.8,
    estimated_yield_per_day=0.00232877,
    risks=("Smart contract risk", "Low TVL risk"),
    requirements=("Minimum deposit: 0.1 APT",),
)


def _render(analysis, address="0x1"):
    console = Console(record=True, width=160, color_system=None)
    format_analysis(analysis, address, console=console)
    return console.export_text()


def test_format_amount_trims_trailing_zeros():
    assert _format_amount(12.5) == "12.5"
    assert _format_amount(1_000_000) == "1,000,000"
    assert _format_amount(0.00000001) == "0.00000001"


def test_truncate_address():
    assert _truncate_address("0x1") == "0x1"
    assert _truncate_address("0x" + "ab" * 32) == "0xabababab...abab"


def test_strategy_table_rows():
    table = build_strategy_table([STRATEGY, STRATEGY])

    assert table.row_count == 2
    assert [column.header for column in table.columns][:4] == [
        "Protocol",
        "Token",
        "Amount",
        "APY %",
    ]


def test_dashboard_lists_strategies_and_recommendation():
    text = _render(YieldAnalysis(strategies=[STRATEGY], ai_recommendation="Stake with **Thala**."))

    assert "Thala" in text
    assert "6.80" in text
    assert "Low TVL risk" in text
    assert "Stake with Thala." in text


def test_dashboard_without_strategies():
    text = _render(YieldAnalysis(strategies=[], ai_recommendation="Hold."))

    assert "No strategies above the minimum yield threshold." in text
