"""
Shared test fixtures for the blockflow test suite.
"""

import itertools

import pytest

from blockflow.analytics.context_overlay import SignalOracle, ZeroFallback
from blockflow.config.settings import BlockflowSettings
from blockflow.core.models import TradeRecord


SAMPLE_CSV = """Time,Ticker (#T),TP,Sector,Industry,Sh,$$,RS,PCT,R,Last
6:08:50 PM,GE,324.32,Industrials,Industrial Conglomerates,72630,23555362,7.46,98.0,,2026-01-02
6:05:02 PM,ABBV,220.18,Healthcare,Drug Manufacturers,1111061,244633411,23.53,99.67,,2025-12-29
6:05:02 PM,COP,99.2,Energy,"Oil, Gas and Consumable Fuels",318105,31556016,5.68,96.0,,2026-01-02
6:05:02 PM,GRAB,5.09,Financial Services,Asset Management,8000000,40720000,12.37,99.0,44.0,2025-12-30
6:05:02 PM,NVDA,188.12,Technology,Semis,1392228,261905931,19.87,99.0,,2026-01-02
6:05:02 PM,INTU,633.84,Technology,Software,197234,125014799,11.2,98.0,,2026-01-02
6:05:02 PM,QGEN,48.94,Healthcare,Life Sciences Tools and Services,1613834,78975957,31.09,99.98,3.0,2018-01-09
5:35:27 PM,ABBV,220.18,Healthcare,Drug Manufacturers,559000,123080620,11.84,98.0,,2026-01-02
5:35:27 PM,AMD,221.08,Technology,Semis,393200,86928656,19.98,99.0,,2026-01-02
"""


@pytest.fixture
def sample_csv():
    """Block-print export in the desk's native header layout."""
    return SAMPLE_CSV


@pytest.fixture
def sample_rows():
    """Raw rows keyed by the desk's native headers."""
    return [
        {
            "Time": "6:08:50 PM",
            "Ticker (#T)": "GE",
            "TP": "324.32",
            "Sector": "Industrials",
            "Industry": "Industrial Conglomerates",
            "Sh": "72,630",
            "$$": "$23,555,362",
            "RS": "7.46",
            "PCT": "98.0",
            "R": "",
            "Last": "2026-01-02",
        },
        {
            "Time": "6:05:02 PM",
            "Ticker (#T)": "nvda",
            "TP": "188.12",
            "Sector": "Technology",
            "Industry": "Semis",
            "Sh": "1392228",
            "$$": "261905931",
            "RS": "19.87",
            "PCT": "99.0",
            "R": "12",
            "Last": "2026-01-02",
        },
        {
            "Time": "6:05:02 PM",
            "Ticker (#T)": "",
            "TP": "10.00",
            "Sector": "Technology",
            "Industry": "Software",
            "Sh": "1000",
            "$$": "5000000",
            "RS": "3.0",
            "PCT": "90.0",
            "R": "",
            "Last": "2026-01-02",
        },
        {
            "Time": "6:05:02 PM",
            "Ticker (#T)": "PM",
            "TP": "159.86",
            "Sector": "Consumer Staples",
            "Industry": "Tobacco",
            "Sh": "0",
            "$$": "0",
            "RS": "12.5",
            "PCT": "99.0",
            "R": "",
            "Last": "2026-01-02",
        },
    ]


@pytest.fixture
def make_record():
    """Factory for trade records with sensible defaults."""
    counter = itertools.count(1)

    def _make(
        ticker="AAPL",
        notional_value=5_000_000.0,
        trade_price=100.0,
        relative_size=1.0,
        rank=None,
        sector="Industrials",
        industry="Machinery",
        observed_date="2026-01-05",
        **kwargs,
    ):
        n = next(counter)
        return TradeRecord(
            id=f"{ticker}-{observed_date}-{n:04d}",
            ticker=ticker,
            trade_timestamp=f"4:{n % 60:02d}:00 PM",
            trade_price=trade_price,
            notional_value=notional_value,
            observed_date=observed_date,
            sector=sector,
            industry=industry,
            relative_size=relative_size,
            rank=rank,
            **kwargs,
        )

    return _make


@pytest.fixture
def settings():
    """Default settings with a deterministic signal fallback."""
    return BlockflowSettings(signal_fallback="zero")


@pytest.fixture
def zero_oracle():
    """Signal oracle with one known date and a flat fallback."""
    return SignalOracle(moves={"2026-01-07": 5.4, "2026-01-06": -2.5}, fallback=ZeroFallback())
