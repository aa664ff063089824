"""Per-scene render plans.

Input layout of every scene plan (indexes as seen by the filter graph):

    0        background (solid color, image or looped video)
    1..N     subtitle PNGs, in overlay order
    N+1      narration audio, or synthesized silence

The filter graph produces ``[bg]`` from input 0, then layers each subtitle
on top of the previous result, ending in ``[vout]``.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from shorts_compose.config import Settings, get_settings
from shorts_compose.exceptions import InvalidScenesError
from shorts_compose.render.audio_mixer import AudioMixer
from shorts_compose.render.effects import compute_effect, is_known_effect_type
from shorts_compose.render.stages import StagePlan
from shorts_compose.schemas.composition import (
    ImageVisual,
    SceneInput,
    SolidColorVisual,
    SubtitleOverlay,
    VideoVisual,
)

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

BACKGROUND_LABEL = "bg"
OUTPUT_LABEL = "vout"


@dataclass(frozen=True)
class InputSource:
    """One ``-i`` input together with its input options."""

    kind: Literal["background", "subtitle", "audio", "silence"]
    args: list[str]


@dataclass(frozen=True)
class RenderPlan:
    """Declarative description of one scene render."""

    scene_id: str
    duration_s: float
    inputs: list[InputSource] = field(default_factory=list)
    video_filter: str = ""
    subtitle_filter: str = ""
    audio_input_index: int = 1

    @property
    def filter_complex(self) -> str:
        return f"{self.video_filter};{self.subtitle_filter}"

    def to_stage(self, output_path: str, settings: Settings | None = None) -> StagePlan:
        """Materialize the full renderer argument list writing to ``output_path``."""
        settings = settings or get_settings()
        args = ["-y"]
        for source in self.inputs:
            args.extend(source.args)
        args.extend(
            [
                "-filter_complex", self.filter_complex,
                "-map", f"[{OUTPUT_LABEL}]",
                "-map", f"{self.audio_input_index}:a",
                "-c:v", settings.video_codec,
                "-preset", settings.video_preset,
                "-crf", str(settings.video_crf),
                "-pix_fmt", settings.pixel_format,
                "-c:a", settings.audio_codec,
                "-b:a", settings.audio_bitrate,
                "-t", str(self.duration_s),
                output_path,
            ]
        )
        return StagePlan(name=f"scene:{self.scene_id}", args=args, output_path=output_path)


def validate_scene(scene: SceneInput, *, strict_effect_types: bool = True) -> None:
    """Reject malformed scene descriptors.

    Raises:
        InvalidScenesError: Identifying the offending scene
    """
    if scene.duration_ms <= 0:
        raise InvalidScenesError(
            f"Scene {scene.scene_id} has invalid duration: {scene.duration_ms}ms",
            scene_id=scene.scene_id,
        )

    visual = scene.visual
    if isinstance(visual, SolidColorVisual):
        if not visual.color or not HEX_COLOR_RE.match(visual.color):
            raise InvalidScenesError(
                f"Scene {scene.scene_id} has invalid solid_color: {visual.color}",
                scene_id=scene.scene_id,
            )
    elif not visual.file_path:
        raise InvalidScenesError(
            f"Scene {scene.scene_id} has no file path for {visual.type}",
            scene_id=scene.scene_id,
        )

    if isinstance(visual, ImageVisual) and visual.ken_burns is not None:
        if strict_effect_types and not is_known_effect_type(visual.ken_burns.type):
            raise InvalidScenesError(
                f"Scene {scene.scene_id} has unknown Ken Burns effect: {visual.ken_burns.type}",
                scene_id=scene.scene_id,
            )

    for i, subtitle in enumerate(scene.subtitles):
        if not (0 <= subtitle.start_ms < subtitle.end_ms <= scene.duration_ms):
            raise InvalidScenesError(
                f"Scene {scene.scene_id} subtitle {i} has invalid window: "
                f"{subtitle.start_ms}ms to {subtitle.end_ms}ms (scene is {scene.duration_ms}ms)",
                scene_id=scene.scene_id,
            )


def _fit_filter(width: int, height: int, frame_rate: int) -> str:
    # Letterbox into the target frame, preserving aspect ratio
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1,fps={frame_rate}"
    )


def _build_background(
    scene: SceneInput,
    width: int,
    height: int,
    frame_rate: int,
) -> tuple[InputSource, str]:
    """Return the background input and the filter producing ``[bg]``."""
    duration_s = scene.duration_s
    visual = scene.visual

    if isinstance(visual, SolidColorVisual):
        color = visual.color.lstrip("#")
        source = InputSource(
            kind="background",
            args=[
                "-f", "lavfi",
                "-i", f"color=c=0x{color}:s={width}x{height}:d={duration_s}:r={frame_rate}",
            ],
        )
        return source, f"[0:v]setsar=1[{BACKGROUND_LABEL}]"

    if isinstance(visual, ImageVisual) and visual.ken_burns is not None:
        if not is_known_effect_type(visual.ken_burns.type):
            logger.warning(
                f"[SCENE] {scene.scene_id}: unknown Ken Burns effect "
                f"'{visual.ken_burns.type}', rendering a static crop"
            )
        effect = compute_effect(visual.ken_burns, width, height, duration_s, frame_rate)
        source = InputSource(
            kind="background",
            args=[
                "-loop", "1",
                "-framerate", str(frame_rate),
                "-t", str(duration_s),
                "-i", visual.file_path,
            ],
        )
        return source, f"[0:v]{effect.to_filter()},setsar=1[{BACKGROUND_LABEL}]"

    if isinstance(visual, ImageVisual):
        source = InputSource(
            kind="background",
            args=["-loop", "1", "-t", str(duration_s), "-i", visual.file_path],
        )
    elif isinstance(visual, VideoVisual):
        source = InputSource(
            kind="background",
            args=["-stream_loop", "-1", "-t", str(duration_s), "-i", visual.file_path],
        )
    else:
        raise InvalidScenesError(
            f"Scene {scene.scene_id} has unsupported visual type", scene_id=scene.scene_id
        )
    return source, f"[0:v]{_fit_filter(width, height, frame_rate)}[{BACKGROUND_LABEL}]"


def _build_enable_expr(subtitle: SubtitleOverlay) -> str:
    return f"between(t,{subtitle.start_ms / 1000},{subtitle.end_ms / 1000})"


def build_subtitle_filter(subtitles: list[SubtitleOverlay]) -> str:
    """Chain one overlay per subtitle, each wrapping the previous output."""
    if not subtitles:
        return f"[{BACKGROUND_LABEL}]null[{OUTPUT_LABEL}]"

    parts = []
    last = len(subtitles) - 1
    for i, subtitle in enumerate(subtitles):
        input_index = i + 1
        prev_label = BACKGROUND_LABEL if i == 0 else f"v{i}"
        next_label = OUTPUT_LABEL if i == last else f"v{i + 1}"
        parts.append(
            f"[{prev_label}][{input_index}:v]overlay=0:0:"
            f"enable='{_build_enable_expr(subtitle)}'[{next_label}]"
        )
    return ";".join(parts)


def plan_scene(
    scene: SceneInput,
    width: int,
    height: int,
    frame_rate: int,
    *,
    settings: Settings | None = None,
) -> RenderPlan:
    """Validate ``scene`` and build its render plan.

    Raises:
        InvalidScenesError: If the scene descriptor is malformed
    """
    settings = settings or get_settings()
    validate_scene(scene, strict_effect_types=settings.strict_effect_types)

    background, video_filter = _build_background(scene, width, height, frame_rate)
    inputs = [background]
    inputs.extend(
        InputSource(kind="subtitle", args=["-i", subtitle.image_path])
        for subtitle in scene.subtitles
    )

    audio_input_index = 1 + len(scene.subtitles)
    if scene.audio_path:
        inputs.append(InputSource(kind="audio", args=["-i", scene.audio_path]))
    else:
        silence = AudioMixer(settings).silence_input_args(scene.duration_s)
        inputs.append(InputSource(kind="silence", args=silence))

    return RenderPlan(
        scene_id=scene.scene_id,
        duration_s=scene.duration_s,
        inputs=inputs,
        video_filter=video_filter,
        subtitle_filter=build_subtitle_filter(scene.subtitles),
        audio_input_index=audio_input_index,
    )
