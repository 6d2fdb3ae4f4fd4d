"""
Configuration schema and loader.

This module defines dataclasses that mirror the expected structure of
the YAML configuration file (`config.yaml`).  A helper function
`load_config()` reads a YAML file from disk and returns an instance
of `Config` populated with defaults for any missing fields.

When extending the configuration, add new fields to the appropriate
dataclass and to the defaults dictionary in `load_config()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import yaml

from ..journal.models import TIMEFRAMES


@dataclass
class StatsConfig:
    """Settings for the performance statistics.

    Attributes
    ----------
    timezone : str
        IANA timezone name treated as the trader's local time.  Day
        boundaries, sessions and weekdays are all evaluated in it.
    breakeven_epsilon : float
        A trade whose absolute P&L is at most this value counts as
        breakeven.  ``0.0`` keeps exact comparison against zero.
    default_timeframe : str
        Window used when the caller does not pick one: ``all``,
        ``today``, ``week`` or ``month``.
    unknown_symbol, no_strategy, unassigned_account : str
        Group labels for trades missing the respective field.
    """

    timezone: str = "UTC"
    breakeven_epsilon: float = 0.0
    default_timeframe: str = "all"
    unknown_symbol: str = "Unknown"
    no_strategy: str = "No Strategy"
    unassigned_account: str = "Unassigned"


@dataclass
class MonteCarloConfig:
    """Trade reordering simulation settings.

    Attributes
    ----------
    simulations : int
        Number of shuffled orderings to evaluate.
    bins : int
        Number of histogram bins for the outcome distribution.
    seed : int, optional
        Seed for the random generator.  Leave empty for a fresh
        sequence on every run.
    """

    simulations: int = 1000
    bins: int = 20
    seed: Optional[int] = None


@dataclass
class ReportConfig:
    out_dir: str = "results"


@dataclass
class Config:
    """Root configuration for the journal tooling.

    Attributes
    ----------
    trades_path : str
        JSON snapshot of the user's trade documents.
    stats : StatsConfig
        Statistics settings.
    monte_carlo : MonteCarloConfig
        Simulation settings.
    report : ReportConfig
        Output location for exported artefacts.
    """

    trades_path: str = "trades.json"
    stats: StatsConfig = field(default_factory=StatsConfig)
    monte_carlo: MonteCarloConfig = field(default_factory=MonteCarloConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def _merge_dict(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries.

    The values in `override` take precedence over those in `defaults`.
    This helper is used when loading YAML into nested dataclasses.
    """
    result: Dict[str, Any] = defaults.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str) -> Config:
    """Load a configuration file from the given YAML path.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    Config
        A populated configuration object.

    Raises
    ------
    ValueError
        If `stats.default_timeframe` is not a known timeframe.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw: Dict[str, Any] = yaml.safe_load(fh) or {}

    defaults: Dict[str, Any] = {
        'trades_path': 'trades.json',
        'stats': {
            'timezone': 'UTC',
            'breakeven_epsilon': 0.0,
            'default_timeframe': 'all',
            'unknown_symbol': 'Unknown',
            'no_strategy': 'No Strategy',
            'unassigned_account': 'Unassigned',
        },
        'monte_carlo': {
            'simulations': 1000,
            'bins': 20,
            'seed': None,
        },
        'report': {
            'out_dir': 'results',
        },
    }

    merged = _merge_dict(defaults, raw)

    stats = merged['stats']
    timeframe = str(stats['default_timeframe']).lower()
    if timeframe not in TIMEFRAMES:
        raise ValueError(
            f"Unknown default_timeframe {stats['default_timeframe']!r}; expected one of {TIMEFRAMES}"
        )
    stats_cfg = StatsConfig(
        timezone=str(stats['timezone']),
        breakeven_epsilon=abs(float(stats['breakeven_epsilon'])),
        default_timeframe=timeframe,
        unknown_symbol=str(stats['unknown_symbol']),
        no_strategy=str(stats['no_strategy']),
        unassigned_account=str(stats['unassigned_account']),
    )

    mc = merged['monte_carlo']
    mc_cfg = MonteCarloConfig(
        simulations=int(mc['simulations']),
        bins=int(mc['bins']),
        seed=None if mc.get('seed') is None else int(mc['seed']),
    )
    report_cfg = ReportConfig(**merged['report'])

    return Config(
        trades_path=str(merged.get('trades_path', 'trades.json')),
        stats=stats_cfg,
        monte_carlo=mc_cfg,
        report=report_cfg,
    )
