# -*- coding: utf-8 -*-
"""
Dashboard view models

Pure functions turning the current nutrition record and scale reading into
what the dashboard renders: per-gram facts scaled by the weight on the scale,
daily-value progress bars and the radial weight gauge.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..food.models import NutritionRecord

# Reference daily values (2000 kcal diet).
DAILY_CALORIES_KCAL = 2000.0
DAILY_CARBS_G = 300.0
DAILY_PROTEIN_G = 50.0
DAILY_FAT_G = 65.0

DEFAULT_MAX_WEIGHT = 500.0

EMPTY_MESSAGE = "Connect ESP-cam to see nutrition data"
EMPTY_HINT = "We'll analyze it and show you the details"
SCALE_HINT = "Place food on the scale to measure"
SCALE_ERROR = "Error connecting to scale"


def _multiplier(weight: Optional[float]) -> float:
    if not weight or weight != weight:  # None, 0 or NaN
        return 0.0
    return float(weight)


def scale_nutrition(record: NutritionRecord, weight: Optional[float]) -> Dict[str, float]:
    """Total amounts for the food currently on the scale."""
    m = _multiplier(weight)
    facts = record.nutritional_facts_per_gram
    return {
        "calories": facts.calories * m,
        "carbohydrates": facts.carbohydrates.total * m,
        "sugars": facts.carbohydrates.sugars * m,
        "dietary_fiber": facts.carbohydrates.dietary_fiber * m,
        "protein": facts.protein * m,
        "fat": facts.fat * m,
        "potassium_mg": facts.potassium_mg * m,
    }


def daily_value_percent(amount: float, reference: float) -> float:
    if reference <= 0:
        return 0.0
    return amount / reference * 100


def _progress_row(label: str, amount: float, unit: str, reference: float) -> Dict[str, Any]:
    percent = daily_value_percent(amount, reference)
    return {
        "label": label,
        "amount": amount,
        "display": f"{amount:.1f}{' ' if unit == 'kcal' else ''}{unit}",
        "percent": round(percent, 1),
        "progress": min(percent, 100.0),
        "percent_display": f"{percent:.1f}% of daily value",
    }


def format_time(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M")


def nutrition_panel(
    record: Optional[NutritionRecord],
    weight: Optional[float],
    *,
    stale: bool = False,
    loading: bool = False,
) -> Dict[str, Any]:
    if loading:
        return {"state": "loading", "message": "Loading nutrition data..."}
    if record is None or stale:
        # Stale records are hidden; the flag lets the client say why.
        return {"state": "empty", "message": EMPTY_MESSAGE, "hint": EMPTY_HINT, "stale": stale}

    totals = scale_nutrition(record, weight)
    facts = record.nutritional_facts_per_gram
    carbs = _progress_row("Carbohydrates", totals["carbohydrates"], "g", DAILY_CARBS_G)
    carbs["breakdown"] = [
        {"label": "Sugars", "display": f"{totals['sugars']:.1f}g"},
        {"label": "Fiber", "display": f"{totals['dietary_fiber']:.1f}g"},
    ]
    rows: List[Dict[str, Any]] = [
        _progress_row("Calories", totals["calories"], "kcal", DAILY_CALORIES_KCAL),
        carbs,
        _progress_row("Protein", totals["protein"], "g", DAILY_PROTEIN_G),
        _progress_row("Fat", totals["fat"], "g", DAILY_FAT_G),
    ]
    return {
        "state": "ready",
        "stale": False,
        "food": record.food,
        "weight_display": f"{_multiplier(weight):.1f}g",
        "time": format_time(record.timestamp),
        "totals": totals,
        "rows": rows,
        "additional": [
            {"label": "Vitamin C", "display": facts.vitamin_c},
            {"label": "Potassium", "display": f"{totals['potassium_mg']:.1f}mg"},
            {"label": "Water Content", "display": facts.water_content},
        ],
    }


def weight_gauge(weight: Optional[float], max_weight: float = DEFAULT_MAX_WEIGHT) -> Dict[str, Any]:
    """Radial gauge settings; the needle value is clamped to the dial."""
    value = min(max(_multiplier(weight), 0.0), max_weight)
    step = 50
    ticks = [t for t in range(0, int(max_weight) + 1, step)]
    return {
        "units": "grams",
        "title": "Weight",
        "min_value": 0,
        "max_value": max_weight,
        "value": value,
        "major_ticks": ticks,
        "minor_ticks": 2,
        "highlights": [
            {"from": 0, "to": 0.3 * max_weight, "color": "rgba(159, 159, 159, 0.3)"},
            {"from": 0.3 * max_weight, "to": 0.5 * max_weight, "color": "rgba(203, 203, 203, 0.45)"},
            {"from": 0.5 * max_weight, "to": 0.7 * max_weight, "color": "rgba(219, 219, 219, 0.45)"},
            {"from": 0.7 * max_weight, "to": max_weight, "color": "rgba(234, 234, 234, 0.45)"},
        ],
        "animation_duration_ms": 500,
    }


def scale_view(weight: Optional[float], *, loading: bool = False, error: Optional[str] = None, max_weight: float = DEFAULT_MAX_WEIGHT) -> Dict[str, Any]:
    if loading:
        return {"state": "loading", "message": "Connecting to scale..."}
    if error:
        return {"state": "error", "message": SCALE_ERROR, "error": error}
    return {"state": "ready", "gauge": weight_gauge(weight, max_weight), "hint": SCALE_HINT}


def dashboard_snapshot(
    *,
    record: Optional[NutritionRecord],
    is_data_valid: bool,
    food_loading: bool,
    food_error: Optional[str],
    weight: float,
    weight_loading: bool,
    weight_error: Optional[str],
    max_weight: float = DEFAULT_MAX_WEIGHT,
) -> Dict[str, Any]:
    return {
        "weight": weight,
        "nutrition": nutrition_panel(
            record,
            weight,
            stale=record is not None and not is_data_valid,
            loading=food_loading,
        ),
        "scale": scale_view(weight, loading=weight_loading, error=weight_error, max_weight=max_weight),
        "errors": {"food": food_error, "weight": weight_error},
    }
