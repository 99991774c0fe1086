#!/usr/bin/env python3
"""
NutriScale command line tools.

Usage:
    python -m nutriscale.cli set-weight 182.5 --api-url http://127.0.0.1:8000
    NUTRISCALE_STORE=firebase python -m nutriscale.cli simulate-scale --readings 0,120,126.4 --interval 1
    python -m nutriscale.cli simulate-scale --random-steps 30 --api-url http://127.0.0.1:8000 --photo apple.jpg
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from .config import settings
from .food.storage import save_weight
from .realtime.simulator import PhotoCapture, ScaleConfig, ScaleSimulator, WeightWriter, random_walk
from .store import get_store


def _parse_readings(raw: str) -> List[float]:
    return [float(x) for x in raw.split(",") if x.strip()]


def _store_writer() -> WeightWriter:
    store = get_store()

    async def write(weight: float) -> None:
        await save_weight(store, weight)

    return write


def _api_writer(api_url: str) -> WeightWriter:
    async def write(weight: float) -> None:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.put(f"{api_url}/api/scale/weight", json={"weight": weight})
            resp.raise_for_status()

    return write


def _api_capture(api_url: str, photo: Path) -> PhotoCapture:
    mime = mimetypes.guess_type(photo.name)[0] or "image/jpeg"

    async def capture(weight: float) -> bool:  # noqa: ARG001
        async with httpx.AsyncClient(timeout=None) as client:
            resp = await client.post(
                f"{api_url}/api/analyze-food",
                content=photo.read_bytes(),
                headers={"Content-Type": mime},
            )
        print(f"HTTP Response code: {resp.status_code}")
        print(f"Response: {resp.text}")
        return resp.status_code == 200

    return capture


def cmd_set_weight(args: argparse.Namespace) -> int:
    writer = _api_writer(args.api_url.rstrip("/")) if args.api_url else _store_writer()
    asyncio.run(writer(args.grams))
    print(f"Weight updated: {args.grams} grams")
    return 0


def cmd_simulate_scale(args: argparse.Namespace) -> int:
    api_url: Optional[str] = args.api_url.rstrip("/") if args.api_url else None
    capture: Optional[PhotoCapture] = None
    if args.photo:
        photo = Path(args.photo)
        if not photo.exists():
            print(f"Error: Photo not found: {photo}")
            return 1
        if not api_url:
            print("Error: --photo requires --api-url")
            return 1
        capture = _api_capture(api_url, photo)

    if args.readings:
        readings = _parse_readings(args.readings)
    else:
        readings = list(random_walk(args.random_steps, seed=args.seed))

    config = ScaleConfig(max_weight=args.max_weight, photo_threshold_g=args.photo_threshold)
    writer = _api_writer(api_url) if api_url else _store_writer()
    simulator = ScaleSimulator(writer, capture, config)
    steps = asyncio.run(simulator.run(readings, interval=args.interval))

    written = sum(1 for s in steps if s.written)
    photos = sum(1 for s in steps if s.photo_triggered)
    print(f"Readings: {len(steps)}, written: {written}, photo triggers: {photos}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="NutriScale tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    set_parser = subparsers.add_parser("set-weight", help="Publish one scale reading")
    set_parser.add_argument("grams", type=float, help="Weight in grams")
    set_parser.add_argument("--api-url", help="Write through a running NutriScale API instead of the store")

    sim_parser = subparsers.add_parser("simulate-scale", help="Replay readings like the scale firmware")
    sim_parser.add_argument("--readings", help="Comma-separated weights in grams")
    sim_parser.add_argument("--random-steps", type=int, default=20, help="Random-walk length when --readings is absent")
    sim_parser.add_argument("--seed", type=int, default=None)
    sim_parser.add_argument("--interval", type=float, default=1.0, help="Seconds between readings")
    sim_parser.add_argument("--max-weight", type=float, default=500.0)
    sim_parser.add_argument("--photo-threshold", type=float, default=5.0, help="Grams of change that trigger a photo")
    sim_parser.add_argument("--api-url", help="Base URL of a running NutriScale API")
    sim_parser.add_argument("--photo", help="Image uploaded whenever a photo is triggered")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if args.command in ("set-weight", "simulate-scale") and not args.api_url and settings.store_backend == "memory":
        # A memory store only lives inside this process; nothing else would see the writes.
        print("Error: --api-url is required unless NUTRISCALE_STORE=firebase")
        return 2

    if args.command == "set-weight":
        return cmd_set_weight(args)
    if args.command == "simulate-scale":
        return cmd_simulate_scale(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
