"""Lightweight persistent cache for the budget form inputs."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

from . import config
from .models import BILL_MODES, BudgetInputs, optional_date, to_decimal

DEFAULT_CACHE: Dict[str, Any] = {
    'pay_start': None,
    'income1': '0',
    'income2': '0',
    'splurge': '0',
    'fire_pct': str(config.DEFAULT_FIRE_PCT),
    'smile_pct': str(config.DEFAULT_SMILE_PCT),
    'bill_mode': config.DEFAULT_BILL_MODE,
}


def load_cache(path: Path | None = None) -> Dict[str, Any]:
    target = path or config.CACHE_PATH
    if not target.exists():
        return DEFAULT_CACHE.copy()
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError):
        return DEFAULT_CACHE.copy()
    if not isinstance(data, dict):
        return DEFAULT_CACHE.copy()
    merged = DEFAULT_CACHE.copy()
    merged.update({k: v for k, v in data.items() if k in DEFAULT_CACHE})
    return merged


def save_cache(cache: Dict[str, Any], path: Path | None = None) -> None:
    target = path or config.CACHE_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open('w', encoding='utf-8') as handle:
        json.dump(cache, handle, indent=2, sort_keys=True)


def _cached_decimal(cache: Dict[str, Any], key: str) -> Decimal:
    try:
        return to_decimal(cache.get(key))
    except ValueError:
        return to_decimal(DEFAULT_CACHE[key])


def inputs_from_cache(cache: Dict[str, Any]) -> BudgetInputs:
    """Rebuild form inputs from cached values, falling back to defaults."""
    bill_mode = cache.get('bill_mode')
    return BudgetInputs(
        pay_cycle_start=optional_date(cache.get('pay_start')),
        income1=_cached_decimal(cache, 'income1'),
        income2=_cached_decimal(cache, 'income2'),
        splurge=_cached_decimal(cache, 'splurge'),
        fire_pct=_cached_decimal(cache, 'fire_pct'),
        smile_pct=_cached_decimal(cache, 'smile_pct'),
        bill_mode=bill_mode if bill_mode in BILL_MODES else config.DEFAULT_BILL_MODE,
    )


def cache_from_inputs(inputs: BudgetInputs) -> Dict[str, Any]:
    return {
        'pay_start': inputs.pay_cycle_start.isoformat() if inputs.pay_cycle_start else None,
        'income1': str(inputs.income1),
        'income2': str(inputs.income2),
        'splurge': str(inputs.splurge),
        'fire_pct': str(inputs.fire_pct),
        'smile_pct': str(inputs.smile_pct),
        'bill_mode': inputs.bill_mode,
    }
