#!/usr/bin/env python3
"""
Drill-Down Map - Main Entry Point

Loads the World map, drills down along the configured region path, attaches
point / flow-line overlays and writes a standalone HTML export for the
configured backend.

Usage:
    python -m drillmap.main

    Backend and mode come from CONFIG["run"] / CONFIG["deck"] or the
    DRILLMAP_RENDERER / DRILLMAP_RENDER_MODE environment variables.
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import geopandas as gpd

from drillmap.config import CONFIG
from drillmap.config_types import AppConfig
from drillmap.errors import BoundaryLoadingTimeoutError
from drillmap.geo.data_service import GeoDataService
from drillmap.models import (
    MapEdge,
    MapPoint,
    RawMapEvent,
    edges_from_dicts,
    points_from_dicts,
    points_from_geodataframe,
)
from drillmap.navigation.resolver import RegionResolver
from drillmap.navigation.state import NavigationState
from drillmap.orchestrator import NavigationOrchestrator
from drillmap.renderers.factory import create_renderer

# ═══════════════════════════════════════════════════════════════════════════
# 🎯 MODULE-LEVEL CONFIG (Single Source of Truth)
# ═══════════════════════════════════════════════════════════════════════════
APP_CONFIG = AppConfig.from_dict(CONFIG)


# ═══════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(app_config: AppConfig = APP_CONFIG) -> logging.Logger:
    """Configure the package logger with a console and an optional file handler.

    Module loggers (drillmap.*) propagate into this one.

    Returns:
        The "drillmap" logger
    """
    level = getattr(logging, app_config.log_level, logging.INFO)
    logger = logging.getLogger("drillmap")
    logger.setLevel(level)
    logger.handlers.clear()

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    # File handler
    if app_config.log_file:
        log_path = Path(app_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)

    return logger


# ═══════════════════════════════════════════════════════════════════════════
# 📂 OVERLAY LOADING
# ═══════════════════════════════════════════════════════════════════════════


def load_overlays(
    path: str, logger: logging.Logger
) -> Tuple[List[MapPoint], List[MapEdge]]:
    """
    Load overlay points and lines.

    A .json file holds {"points": [...], "lines": [...]} records. Any other
    file is read with geopandas as point features with an "id" column.
    """
    overlay_path = Path(path)
    logger.info(f"📂 Loading overlays: {overlay_path}")

    if overlay_path.suffix.lower() == ".json":
        with open(overlay_path, encoding="utf-8") as f:
            data = json.load(f)
        points = points_from_dicts(data.get("points", []))
        lines = edges_from_dicts(data.get("lines", []))
    else:
        gdf = gpd.read_file(overlay_path)
        name_field = "name" if "name" in gdf.columns else None
        points = points_from_geodataframe(gdf, "id", name_field=name_field)
        lines = []

    logger.info(f"   ✅ Loaded {len(points)} points, {len(lines)} lines")
    return points, lines


# ═══════════════════════════════════════════════════════════════════════════
# ▶️ RUN
# ═══════════════════════════════════════════════════════════════════════════


async def _run(app_config: AppConfig, logger: logging.Logger) -> Dict[str, Any]:
    run_cfg = app_config.run
    kind = run_cfg.get("renderer", "deckgl")

    # === STEP 1: Wire state, data, resolver and renderer ===
    state = NavigationState(app_config.navigation)
    resolver = RegionResolver(
        state, app_config.navigation, GeoDataService(app_config.geo_data)
    )
    options: Dict[str, Any] = {}
    if kind in ("plotly", "echarts"):
        options["resolver"] = resolver
    renderer = create_renderer(
        kind, run_cfg.get("container", "map-container"), state, app_config, **options
    )
    orchestrator = NavigationOrchestrator(state, resolver, renderer, config=app_config)

    output: Optional[str] = None
    try:
        # === STEP 2: World map ===
        await orchestrator.initialize()
        logger.info(f"   🌍 World: {len(state.geography)} regions")

        # === STEP 3: Drill down ===
        for region_name in run_cfg.get("drill_path", []):
            plan = await orchestrator.handle_double_click(RawMapEvent("geo", region_name))
            if plan is None:
                logger.warning(f"   ⚠️ Cannot descend into '{region_name}', stopping")
                break
            logger.info(
                f"   🪜 {plan.next_level.value}: {region_name} "
                f"({len(state.geography)} regions)"
            )

        # === STEP 4: Overlays ===
        overlay_file = run_cfg.get("overlay_file")
        if overlay_file:
            points, lines = load_overlays(overlay_file, logger)
            pending = [orchestrator.set_points(points), orchestrator.set_lines(lines)]
            try:
                for future in pending:
                    if future is not None:
                        await future
            except BoundaryLoadingTimeoutError as e:
                logger.warning(f"   ⚠️ Overlays not drawn: {e}")
            renderer.clock.tick()

        # === STEP 5: Export ===
        if run_cfg.get("write_html", True):
            output = run_cfg.get("output_html", "Output/drillmap.html")
            renderer.to_html(output)

        return {
            **renderer.describe(),
            "renderer": kind,
            "level": state.level.value,
            "country": state.country,
            "adcode": state.adcode,
            "regions": len(state.geography),
            "output_html": output,
        }
    finally:
        orchestrator.destroy()


def run_drillmap(app_config: AppConfig = APP_CONFIG) -> Dict[str, Any]:
    """Run the drill-down export workflow."""
    logger = setup_logging(app_config)
    logger.info("=" * 60)
    logger.info("🗺️ Drill-Down Map")
    logger.info("=" * 60)

    start = time.perf_counter()
    summary = asyncio.run(_run(app_config, logger))
    logger.info(f"✅ Done in {time.perf_counter() - start:.2f}s: {summary}")
    return summary


if __name__ == "__main__":
    run_drillmap()
