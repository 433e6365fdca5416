#!/usr/bin/env python3
"""
Icon Atlas Builder

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Rasterize SVG icons and pack them left to right into one
RGBA strip plus a lookup table of rectangles for deck.gl's IconLayer.

Key Patterns:
- Every build rasterizes the whole icon set; there is no incremental append
- IconAtlas is immutable; IconRegistry swaps in a new atlas on rebuild so
  readers always see a complete atlas or none
- cairosvg is imported lazily (it needs the native cairo library); tests and
  headless callers can inject any `rasterizer(svg) -> PIL.Image`

Dependencies:
- Pillow (atlas image, PNG encoding)
- cairosvg (SVG rasterization)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import base64
import io
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional

from PIL import Image

logger = logging.getLogger(__name__)

Rasterizer = Callable[[str], Image.Image]

# 8x8 glyphs drawn in currentColor; IconLayer tints them through the mask
DEFAULT_SVG_ICONS: Dict[str, str] = {
    "circle": (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 8 8" width="8" height="8">'
        '<circle cx="4" cy="4" r="3" fill="currentColor" />'
        "</svg>"
    ),
    "star": (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 8 8" width="8" height="8">'
        '<path fill="currentColor" d="M4 5.757L6.06 7 5.455 4.656 7.5 3.08l-2.396-.204'
        'L4 1 3.104 2.876.5 3.08l2.045 1.576L1.94 7z"/>'
        "</svg>"
    ),
    "diamond": (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 8 8" width="8" height="8">'
        '<path fill="currentColor" d="M4 1L1 4l3 3 3-3L4 1z"/>'
        "</svg>"
    ),
}


# ═══════════════════════════════════════════════════════════════════════════
# 🖼️ RASTERIZATION
# ═══════════════════════════════════════════════════════════════════════════


def rasterize_svg(svg: str) -> Image.Image:
    """
    Render an SVG string at its intrinsic size.

    Args:
        svg: Inline SVG markup

    Returns:
        RGBA PIL image
    """
    import cairosvg

    png_bytes = cairosvg.svg2png(bytestring=svg.encode("utf-8"))
    return Image.open(io.BytesIO(png_bytes)).convert("RGBA")


# ═══════════════════════════════════════════════════════════════════════════
# 📦 ATLAS RECORDS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IconRect:
    """Rectangle of one icon inside the atlas strip."""

    x: int
    y: int
    width: int
    height: int
    mask: bool = True

    def as_dict(self) -> Dict[str, object]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "mask": self.mask,
        }


@dataclass(frozen=True)
class IconAtlas:
    """Packed icon texture and its lookup table."""

    image: Image.Image = field(compare=False)
    mapping: Mapping[str, IconRect]

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def data_url(self) -> str:
        """PNG data URL usable as deck.gl's `iconAtlas`."""
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    def mapping_dict(self) -> Dict[str, Dict[str, object]]:
        return {key: rect.as_dict() for key, rect in self.mapping.items()}

    def __contains__(self, key: str) -> bool:
        return key in self.mapping


def build_icon_atlas(
    icons: Mapping[str, str], rasterizer: Optional[Rasterizer] = None
) -> IconAtlas:
    """
    Rasterize `icons` and pack them into one strip.

    Icon i is placed at x = sum of the widths of icons before it, y = 0. The
    strip is as tall as the tallest icon.

    Args:
        icons: Icon key -> SVG markup (insertion order is kept)
        rasterizer: Callable turning SVG markup into a PIL image

    Returns:
        New IconAtlas
    """
    rasterize = rasterizer or rasterize_svg

    # === STEP 1: Rasterize each icon once ===
    images = {key: rasterize(svg) for key, svg in icons.items()}

    # === STEP 2: Lay out left to right ===
    mapping: Dict[str, IconRect] = {}
    x = 0
    height = 0
    for key, img in images.items():
        mapping[key] = IconRect(x=x, y=0, width=img.width, height=img.height)
        x += img.width
        height = max(height, img.height)

    # === STEP 3: Compose ===
    atlas_image = Image.new("RGBA", (max(x, 1), max(height, 1)), (0, 0, 0, 0))
    for key, img in images.items():
        atlas_image.paste(img.convert("RGBA"), (mapping[key].x, 0))

    return IconAtlas(image=atlas_image, mapping=mapping)


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ REGISTRY
# ═══════════════════════════════════════════════════════════════════════════


class IconRegistry:
    """
    Default icons plus icons registered at runtime, with the current atlas.

    register_icons() merges a batch of icons and rebuilds the atlas once if
    one has already been built; register many icons per call rather than one
    at a time.
    """

    def __init__(
        self,
        base_icons: Optional[Mapping[str, str]] = None,
        rasterizer: Optional[Rasterizer] = None,
    ):
        self._base = dict(DEFAULT_SVG_ICONS if base_icons is None else base_icons)
        self._extra: Dict[str, str] = {}
        self._rasterizer = rasterizer
        self._atlas: Optional[IconAtlas] = None
        self.build_count = 0

    @property
    def icons(self) -> Dict[str, str]:
        return {**self._base, **self._extra}

    @property
    def atlas(self) -> IconAtlas:
        """Current atlas, built on first access."""
        if self._atlas is None:
            self.rebuild()
        return self._atlas

    @property
    def is_built(self) -> bool:
        return self._atlas is not None

    def rebuild(self) -> IconAtlas:
        icons = self.icons
        self._atlas = build_icon_atlas(icons, self._rasterizer)
        self.build_count += 1
        logger.info(
            f"🖼️ Built icon atlas: {len(icons)} icons, "
            f"{self._atlas.width}x{self._atlas.height}px"
        )
        return self._atlas

    def register_icons(self, icons: Mapping[str, str]) -> None:
        self._extra.update(icons)
        if self._atlas is not None:
            self.rebuild()
