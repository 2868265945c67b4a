"""
Response schema for food photo analysis.

Strictly typed, fully populated shape returned to the client regardless of
which model answered. Instances are built by `ai_models.normalization`;
nothing here validates loosely typed model output.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Orientation = Literal["portrait", "landscape", "square"]

ORIENTATIONS: tuple[str, ...] = ("portrait", "landscape", "square")


class BBoxNorm(BaseModel):
    """Bounding box as fractions (0..1) of image width/height."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0


class Macros(BaseModel):
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0
    sugar_g: float = 0.0


class Micros(BaseModel):
    sodium_mg: float = 0.0
    potassium_mg: float = 0.0
    calcium_mg: float = 0.0
    iron_mg: float = 0.0
    vitamin_a_mcg: float = 0.0
    vitamin_c_mg: float = 0.0
    cholesterol_mg: float = 0.0


class Nutrition(BaseModel):
    """Per-item nutrition estimate."""

    calories_kcal: float = 0.0
    macros: Macros = Field(default_factory=Macros)
    micros: Micros = Field(default_factory=Micros)
    allergens: List[str] = Field(default_factory=list)


class FoodItem(BaseModel):
    """
    Single food recognized in the photo.

    Example:
        >>> item = FoodItem(
        ...     label="Nasi Goreng",
        ...     confidence=0.95,
        ...     serving_est_g=200.0,
        ... )
        >>> item.nutrition.calories_kcal
        0.0
    """

    label: str = ""
    confidence: float = 0.5
    serving_est_g: float = 0.0
    bbox_norm: BBoxNorm = Field(default_factory=BBoxNorm)
    nutrition: Nutrition = Field(default_factory=Nutrition)


class ImageMeta(BaseModel):
    width: int = 0
    height: int = 0
    orientation: Orientation = "square"


class Totals(Nutrition):
    """Meal totals: item nutrition shape plus the summed serving weight."""

    serving_total_g: float = 0.0


class AnalysisResult(BaseModel):
    """
    Complete, normalized analysis of one photo.

    Attributes:
        image_meta: Image dimensions and orientation
        composition: Recognized items in the order the model listed them
        totals: Supplied totals, or field-wise sums over composition
        notes: Free text from the model, omitted when absent
    """

    image_meta: ImageMeta = Field(default_factory=ImageMeta)
    composition: List[FoodItem] = Field(default_factory=list)
    totals: Totals = Field(default_factory=Totals)
    notes: Optional[str] = None

    def to_response(self) -> dict:
        """JSON-ready body; `notes` is left out when absent."""
        return self.model_dump(exclude_none=True)


__all__ = [
    "ORIENTATIONS",
    "Orientation",
    "BBoxNorm",
    "Macros",
    "Micros",
    "Nutrition",
    "FoodItem",
    "ImageMeta",
    "Totals",
    "AnalysisResult",
]
