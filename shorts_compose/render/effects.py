"""Ken Burns (pan/zoom) expressions for still images.

The image is first scaled up past the output size so that the zoompan crop
window never leaves the source, then zoompan animates zoom and crop offset
per output frame (``on`` is the output frame number).
"""

import math
from dataclasses import dataclass
from functools import lru_cache

from shorts_compose.schemas.composition import KenBurnsEffect, KenBurnsEffectType

MIN_ZOOM_SCALE = 1.0
MAX_ZOOM_SCALE = 2.0
MIN_PAN_AMOUNT = 0.0
MAX_PAN_AMOUNT = 0.5

# Headroom on top of the largest zoom/pan so rounding never crops past the edge
OVERSAMPLE_MARGIN = 1.1

CENTER_X_ZOOMED = "iw/2-(iw/zoom/2)"
CENTER_Y_ZOOMED = "ih/2-(ih/zoom/2)"
CENTER_X = "(iw-ow)/2"
CENTER_Y = "(ih-oh)/2"

KNOWN_EFFECT_TYPES = frozenset(t.value for t in KenBurnsEffectType)


@dataclass(frozen=True)
class EffectExpression:
    """Resolved zoompan parameters for one scene."""

    effect_type: str
    zoom_scale: float
    pan_amount: float
    zoom_expr: str
    x_expr: str
    y_expr: str
    total_frames: int
    scaled_width: int
    scaled_height: int
    width: int
    height: int
    frame_rate: int

    @property
    def animated(self) -> bool:
        return self.effect_type in KNOWN_EFFECT_TYPES

    def to_filter(self) -> str:
        """Render as an FFmpeg filter chain: upscale, then zoompan."""
        return (
            f"scale={self.scaled_width}:{self.scaled_height}:force_original_aspect_ratio=increase,"
            f"zoompan=z='{self.zoom_expr}':x='{self.x_expr}':y='{self.y_expr}'"
            f":d={self.total_frames}:s={self.width}x{self.height}:fps={self.frame_rate}"
        )


def clamp_zoom_scale(value: float) -> float:
    return min(max(value, MIN_ZOOM_SCALE), MAX_ZOOM_SCALE)


def clamp_pan_amount(value: float) -> float:
    return min(max(value, MIN_PAN_AMOUNT), MAX_PAN_AMOUNT)


def is_known_effect_type(effect_type: str) -> bool:
    return effect_type in KNOWN_EFFECT_TYPES


def compute_effect(
    effect: KenBurnsEffect,
    width: int,
    height: int,
    duration_s: float,
    frame_rate: int,
) -> EffectExpression:
    """Compute the pan/zoom animation for ``effect``.

    Args:
        effect: Effect type and magnitudes (clamped here, never rejected)
        width: Output width in pixels
        height: Output height in pixels
        duration_s: Scene duration in seconds
        frame_rate: Output frame rate

    Returns:
        EffectExpression. An unknown effect type yields a static, centered,
        unzoomed crop.
    """
    return _compute(
        effect.type,
        clamp_zoom_scale(effect.zoom_scale),
        clamp_pan_amount(effect.pan_amount),
        width,
        height,
        duration_s,
        frame_rate,
    )


@lru_cache(maxsize=256)
def _compute(
    effect_type: str,
    zoom_scale: float,
    pan_amount: float,
    width: int,
    height: int,
    duration_s: float,
    frame_rate: int,
) -> EffectExpression:
    total_frames = math.ceil(duration_s * frame_rate)

    scale_factor = max(zoom_scale, 1.0 + pan_amount) * OVERSAMPLE_MARGIN
    scaled_width = math.ceil(width * scale_factor)
    scaled_height = math.ceil(height * scale_factor)

    pan_px_x = math.ceil(width * pan_amount)
    pan_px_y = math.ceil(height * pan_amount)

    if effect_type == KenBurnsEffectType.ZOOM_IN.value:
        z = f"1+({zoom_scale}-1)*on/{total_frames}"
        x, y = CENTER_X_ZOOMED, CENTER_Y_ZOOMED
    elif effect_type == KenBurnsEffectType.ZOOM_OUT.value:
        z = f"{zoom_scale}-({zoom_scale}-1)*on/{total_frames}"
        x, y = CENTER_X_ZOOMED, CENTER_Y_ZOOMED
    elif effect_type == KenBurnsEffectType.PAN_LEFT.value:
        z = str(zoom_scale)
        x, y = f"{pan_px_x}*(1-on/{total_frames})", CENTER_Y
    elif effect_type == KenBurnsEffectType.PAN_RIGHT.value:
        z = str(zoom_scale)
        x, y = f"{pan_px_x}*on/{total_frames}", CENTER_Y
    elif effect_type == KenBurnsEffectType.PAN_UP.value:
        z = str(zoom_scale)
        x, y = CENTER_X, f"{pan_px_y}*(1-on/{total_frames})"
    elif effect_type == KenBurnsEffectType.PAN_DOWN.value:
        z = str(zoom_scale)
        x, y = CENTER_X, f"{pan_px_y}*on/{total_frames}"
    else:
        z, x, y = "1", CENTER_X, CENTER_Y

    return EffectExpression(
        effect_type=effect_type,
        zoom_scale=zoom_scale,
        pan_amount=pan_amount,
        zoom_expr=z,
        x_expr=x,
        y_expr=y,
        total_frames=total_frames,
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        width=width,
        height=height,
        frame_rate=frame_rate,
    )
