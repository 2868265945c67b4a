"""Normalization of model output into the AnalysisResult schema.

`normalize_analysis` is the single boundary between "anything the model
returned" and "exactly this schema": it accepts any parsed JSON value and
always returns a fully populated AnalysisResult. It never raises; invalid
or missing fields fall back to defaults, totals are derived from the items
when not supplied.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional
import math

from pydantic import BaseModel

from ai_models.food_analysis_models import (
    ORIENTATIONS,
    AnalysisResult,
    BBoxNorm,
    FoodItem,
    ImageMeta,
    Macros,
    Micros,
    Nutrition,
    Totals,
)

DEFAULT_CONFIDENCE = 0.5

MACRO_FIELDS: tuple[str, ...] = tuple(Macros.model_fields)
MICRO_FIELDS: tuple[str, ...] = tuple(Micros.model_fields)
BBOX_FIELDS: tuple[str, ...] = tuple(BBoxNorm.model_fields)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _finite(value: Any) -> Optional[float]:
    """Finite float from a number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        raw = value
    elif isinstance(value, str):
        raw = value.strip()
    else:
        return None
    try:
        num = float(raw)
    except (OverflowError, ValueError):
        return None
    return num if math.isfinite(num) else None


def _num(value: Any, default: float = 0.0) -> float:
    num = _finite(value)
    return default if num is None else num


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _strings(value: Any) -> Optional[List[str]]:
    if not isinstance(value, (list, tuple)):
        return None
    return [str(v) for v in value]


def _label(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return ""


def derive_orientation(width: int, height: int) -> str:
    if width == height:
        return "square"
    if width > height:
        return "landscape"
    return "portrait"


def _normalize_image_meta(raw: Any) -> ImageMeta:
    data = _as_mapping(raw)
    width = int(max(0.0, _num(data.get("width"))))
    height = int(max(0.0, _num(data.get("height"))))
    orientation = data.get("orientation")
    if not (isinstance(orientation, str) and orientation in ORIENTATIONS):
        orientation = derive_orientation(width, height)
    return ImageMeta(width=width, height=height, orientation=orientation)


def _normalize_nutrition(raw: Any) -> Nutrition:
    data = _as_mapping(raw)
    macros = _as_mapping(data.get("macros"))
    micros = _as_mapping(data.get("micros"))
    return Nutrition(
        calories_kcal=_num(data.get("calories_kcal")),
        macros=Macros(**{f: _num(macros.get(f)) for f in MACRO_FIELDS}),
        micros=Micros(**{f: _num(micros.get(f)) for f in MICRO_FIELDS}),
        allergens=_strings(data.get("allergens")) or [],
    )


def _normalize_item(raw: Any) -> FoodItem:
    data = _as_mapping(raw)
    bbox = _as_mapping(data.get("bbox_norm"))
    # flat items carry nutrition fields at top level
    nutrition = data.get("nutrition") if isinstance(data.get("nutrition"), Mapping) else data
    return FoodItem(
        label=_label(data.get("label")),
        confidence=_clamp(_num(data.get("confidence"), DEFAULT_CONFIDENCE), 0.0, 1.0),
        serving_est_g=max(0.0, _num(data.get("serving_est_g"))),
        bbox_norm=BBoxNorm(**{f: _clamp(_num(bbox.get(f)), 0.0, 1.0) for f in BBOX_FIELDS}),
        nutrition=_normalize_nutrition(nutrition),
    )


def _supplied_or_sum(supplied: Any, values: Iterable[float]) -> float:
    num = _finite(supplied)
    return num if num is not None else sum(values, 0.0)


def _union_allergens(items: List[FoodItem]) -> List[str]:
    seen: Dict[str, None] = {}
    for item in items:
        for allergen in item.nutrition.allergens:
            seen.setdefault(allergen, None)
    return list(seen)


def _normalize_totals(raw: Any, items: List[FoodItem]) -> Totals:
    data = _as_mapping(raw)
    macros = _as_mapping(data.get("macros"))
    micros = _as_mapping(data.get("micros"))
    allergens = _strings(data.get("allergens"))
    return Totals(
        serving_total_g=_supplied_or_sum(
            data.get("serving_total_g"), (i.serving_est_g for i in items)
        ),
        calories_kcal=_supplied_or_sum(
            data.get("calories_kcal"), (i.nutrition.calories_kcal for i in items)
        ),
        macros=Macros(
            **{
                f: _supplied_or_sum(
                    macros.get(f), (getattr(i.nutrition.macros, f) for i in items)
                )
                for f in MACRO_FIELDS
            }
        ),
        micros=Micros(
            **{
                f: _supplied_or_sum(
                    micros.get(f), (getattr(i.nutrition.micros, f) for i in items)
                )
                for f in MICRO_FIELDS
            }
        ),
        allergens=allergens if allergens is not None else _union_allergens(items),
    )


def normalize_analysis(raw: Any) -> AnalysisResult:
    """Coerce any parsed value into a complete AnalysisResult.

    Example:
        >>> result = normalize_analysis(
        ...     {"composition": [
        ...         {"nutrition": {"calories_kcal": 100}},
        ...         {"nutrition": {"calories_kcal": "50"}},
        ...     ]}
        ... )
        >>> result.totals.calories_kcal
        150.0
    """
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    data = _as_mapping(raw)
    composition = data.get("composition")
    items = (
        [_normalize_item(it) for it in composition]
        if isinstance(composition, (list, tuple))
        else []
    )
    notes = data.get("notes")
    return AnalysisResult(
        image_meta=_normalize_image_meta(data.get("image_meta")),
        composition=items,
        totals=_normalize_totals(data.get("totals"), items),
        notes=notes if isinstance(notes, str) else None,
    )


__all__ = ["normalize_analysis", "derive_orientation", "DEFAULT_CONFIDENCE"]
