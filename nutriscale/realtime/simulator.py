from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

WeightWriter = Callable[[float], Awaitable[None]]
PhotoCapture = Callable[[float], Awaitable[bool]]


@dataclass
class ScaleConfig:
    min_weight: float = 0.0
    max_weight: float = 500.0
    adc_min: int = 0
    adc_max: int = 4095
    # Readings closer than this to the last published one are not written.
    deadband_g: float = 0.5
    photo_threshold_g: float = 5.0


@dataclass
class ScaleStep:
    weight: float
    written: bool = False
    photo_triggered: bool = False
    photo_ok: Optional[bool] = None


def clamp_weight(weight: float, config: ScaleConfig) -> float:
    return min(max(weight, config.min_weight), config.max_weight)


def adc_to_grams(raw: int, config: ScaleConfig) -> float:
    """Linear map of a 12-bit ADC reading onto the scale range, 0.01 g resolution."""
    span = config.adc_max - config.adc_min
    if span <= 0:
        return config.min_weight
    lo = config.min_weight * 100
    hi = config.max_weight * 100
    centigrams = int((raw - config.adc_min) * (hi - lo) / span + lo)
    return clamp_weight(centigrams / 100.0, config)


def random_walk(steps: int, *, start: float = 0.0, max_step: float = 40.0, seed: Optional[int] = None) -> Iterator[float]:
    rng = random.Random(seed)
    weight = start
    for _ in range(steps):
        weight = max(0.0, weight + rng.uniform(-max_step, max_step))
        yield round(weight, 2)


class ScaleSimulator:
    """Publish scale readings the way the ESP32-CAM firmware does."""

    def __init__(
        self,
        write_weight: WeightWriter,
        capture_photo: Optional[PhotoCapture] = None,
        config: Optional[ScaleConfig] = None,
    ) -> None:
        self.write_weight = write_weight
        self.capture_photo = capture_photo
        self.config = config or ScaleConfig()
        self.last_weight: Optional[float] = None
        self.last_photo_weight: Optional[float] = None

    async def feed(self, weight: float) -> ScaleStep:
        weight = clamp_weight(float(weight), self.config)
        step = ScaleStep(weight=weight)
        if self.last_weight is not None and abs(weight - self.last_weight) < self.config.deadband_g:
            return step

        self.last_weight = weight
        await self.write_weight(weight)
        step.written = True
        logger.info("Weight updated: %.2f grams", weight)

        if self.last_photo_weight is None:
            self.last_photo_weight = weight
        if abs(weight - self.last_photo_weight) < self.config.photo_threshold_g:
            return step

        step.photo_triggered = True
        if self.capture_photo is None:
            return step
        logger.info("Significant weight change detected. Taking photo...")
        step.photo_ok = await self.capture_photo(weight)
        if step.photo_ok:
            self.last_photo_weight = weight
        else:
            logger.warning("Failed to capture or upload photo")
        return step

    async def feed_adc(self, raw: int) -> ScaleStep:
        return await self.feed(adc_to_grams(raw, self.config))

    async def run(self, readings: Iterable[float], *, interval: float = 0.0) -> List[ScaleStep]:
        steps: List[ScaleStep] = []
        for reading in readings:
            steps.append(await self.feed(reading))
            if interval > 0:
                await asyncio.sleep(interval)
        return steps
