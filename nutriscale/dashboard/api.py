# -*- coding: utf-8 -*-
"""Dashboard: snapshot and scale endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config import settings
from ..food.storage import is_fresh, load_food_record, load_weight, save_weight
from ..store import RealtimeStore, get_store
from .presentation import dashboard_snapshot

router = APIRouter(prefix="/api", tags=["Dashboard"])


class ScaleWeightResponse(BaseModel):
    weight: float


class ScaleWeightUpdate(BaseModel):
    weight: float = Field(..., allow_inf_nan=False, description="Grams on the scale")


@router.get("/dashboard", summary="Current dashboard snapshot")
async def get_dashboard(store: RealtimeStore = Depends(get_store)) -> dict:
    record = await load_food_record(store)
    weight = await load_weight(store)
    return dashboard_snapshot(
        record=record,
        is_data_valid=record is not None and is_fresh(record.timestamp),
        food_loading=False,
        food_error=None,
        weight=weight,
        weight_loading=False,
        weight_error=None,
        max_weight=settings.max_weight,
    )


@router.get("/scale/weight", response_model=ScaleWeightResponse, summary="Current scale reading")
async def get_scale_weight(store: RealtimeStore = Depends(get_store)) -> ScaleWeightResponse:
    return ScaleWeightResponse(weight=await load_weight(store))


@router.put("/scale/weight", response_model=ScaleWeightResponse, summary="Publish a scale reading")
async def put_scale_weight(
    request: ScaleWeightUpdate, store: RealtimeStore = Depends(get_store)
) -> ScaleWeightResponse:
    # Devices normally write the store directly; this serves simulators and the memory store.
    await save_weight(store, request.weight)
    return ScaleWeightResponse(weight=request.weight)
