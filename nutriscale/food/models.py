# -*- coding: utf-8 -*-
"""Food: pydantic models for the nutrition record."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Carbohydrates(BaseModel):
    total: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    sugars: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    dietary_fiber: float = Field(..., ge=0, strict=True, allow_inf_nan=False)


class NutritionFactsPerGram(BaseModel):
    calories: float = Field(..., ge=0, strict=True, allow_inf_nan=False, description="kcal per gram")
    carbohydrates: Carbohydrates
    protein: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    fat: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    vitamin_c: str = Field(..., strict=True, description="e.g. '0.07% RDI'")
    potassium_mg: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    water_content: str = Field(..., strict=True, description="e.g. '85%'")


class NutritionAnalysis(BaseModel):
    """What the vision model is asked to return. Unknown keys are dropped."""

    food: str = Field(..., min_length=1, strict=True)
    nutritional_facts_per_gram: NutritionFactsPerGram


class NutritionRecord(NutritionAnalysis):
    """The single current record stored at path `food`."""

    timestamp: int = Field(..., ge=0, strict=True, description="Creation time, epoch milliseconds")


class AnalyzeParseFailure(BaseModel):
    raw: Optional[str] = None
    error: str


class ErrorResponse(BaseModel):
    error: str


class RelayFailureResponse(BaseModel):
    success: bool = False
    error: str


class FoodStateResponse(BaseModel):
    food: Optional[NutritionRecord] = None
    is_data_valid: bool = False
