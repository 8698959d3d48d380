# main.py
# Entry point. Replays a synthetic drive along a route through NavigationSystem.
# In production, feed NavigationSystem.update() from the real location source.
#
#   roadnav-sim --origin 39.92409,32.845382 --destination 39.9210086,32.8529793
#   roadnav-sim --route logs/active_route.json --detour-at 300 --detour-m 90

import argparse
import logging
import math
import sys
from typing import Iterator, List, Optional, Tuple

from .errors import NavigationError
from .geo_utils import EARTH_RADIUS_M, distance
from .models import Coord, Position, RouteStatus
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .navigator import NavigationSystem
from .osrm_client import OSRMClient
from .recalculation import InlineRecalculator
from .scheduler import ManualScheduler
from ..tts import Speaker

logger = logging.getLogger(__name__)


def parse_coord(text: str) -> Coord:
    try:
        lat, lon = (float(x) for x in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected 'lat,lon', got {text!r}")
    return Coord(lat, lon)


def _offset_east(c: Coord, meters: float) -> Coord:
    d_lon = math.degrees(meters / (EARTH_RADIUS_M * math.cos(math.radians(c.lat))))
    return Coord(c.lat, c.lon + d_lon)


def walk_polyline(polyline: List[Coord], spacing_m: float) -> Iterator[Tuple[Coord, float]]:
    """Yield (coord, distance_along) every spacing_m along the polyline."""
    yield polyline[0], 0.0
    along = 0.0
    next_at = spacing_m
    for a, b in zip(polyline, polyline[1:]):
        seg = distance(a, b)
        while seg > 0 and next_at <= along + seg:
            t = (next_at - along) / seg
            yield Coord(a.lat + t * (b.lat - a.lat), a.lon + t * (b.lon - a.lon)), next_at
            next_at += spacing_m
        along += seg
    yield polyline[-1], along


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay a synthetic trip through the navigation core.")
    parser.add_argument("--origin", type=parse_coord, help="lat,lon")
    parser.add_argument("--destination", type=parse_coord, help="lat,lon")
    parser.add_argument("--route", help="Saved route JSON instead of asking OSRM")
    parser.add_argument("--mode", choices=["driving", "walking", "cycling"], default=None)
    parser.add_argument("--speed", type=float, default=10.0, help="Simulated speed in m/s")
    parser.add_argument("--spacing", type=float, default=25.0, help="Metres between samples")
    parser.add_argument("--detour-at", type=float, default=None, help="Start a detour at this distance")
    parser.add_argument("--detour-m", type=float, default=80.0, help="Lateral detour size")
    parser.add_argument("--detour-len", type=float, default=150.0, help="Detour length along the route")
    parser.add_argument("--voice", action="store_true", help="Speak instructions with pyttsx3")
    parser.add_argument("--log-dir", default="logs")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # ------------------------------------------------------------------
    # Config: tweak thresholds or paths via .env / ROADNAV_*, not in modules
    # ------------------------------------------------------------------
    overrides = {"log_dir": args.log_dir}
    if args.mode:
        overrides["travel_mode"] = args.mode
    config = NavConfig.from_env(**overrides)

    speaker = None
    speak = None
    if args.voice:
        speaker = Speaker()
        speak = speaker.speak

    provider = OSRMClient(config)
    scheduler = ManualScheduler()
    nav = NavigationSystem(
        provider=provider,
        config=config,
        speak=speak,
        scheduler=scheduler,
        recalculator=InlineRecalculator(provider),
    )
    nav.subscribe(lambda snap: logger.debug(f"snapshot {snap.to_dict()}"))

    # 1. Obtain a route
    try:
        if args.route:
            route = NavLogger(config).load_route(args.route)
            if route is None:
                print(f"[Main] Could not load route from {args.route}")
                return 1
        elif args.origin and args.destination:
            route = provider.request_route(args.origin, args.destination, config.travel_mode)
        else:
            print("[Main] Pass --route, or both --origin and --destination.")
            return 2
    except NavigationError as e:
        print(f"[Main] Could not start navigation: {e}")
        return 1

    nav.confirm_route(route)
    print("\n--- GPS Loop Active ---")

    # 2. GPS loop: replay samples along the polyline
    dt = args.spacing / args.speed
    clock_ms = 0
    for coord, along in walk_polyline(route.polyline, args.spacing):
        if args.detour_at is not None and args.detour_at <= along < args.detour_at + args.detour_len:
            coord = _offset_east(coord, args.detour_m)

        clock_ms += int(dt * 1000)
        scheduler.advance(dt)
        result = nav.update(Position(
            lat=coord.lat, lon=coord.lon, accuracy_m=5.0,
            captured_at_ms=clock_ms, speed_mps=args.speed,
        ))
        print(f"  GPS {coord.lat:.6f},{coord.lon:.6f} → [{result.status.name}] {result.message}")

        if result.status == RouteStatus.FINISHED:
            print("  ✓  Destination reached. Navigation ended.")
            break

    print("\n--- Session complete ---")
    print(f"    Log files written to: {config.log_dir}/")
    nav.shutdown()
    if speaker:
        speaker.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
