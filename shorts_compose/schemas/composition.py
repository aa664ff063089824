"""Request and result schemas for scene composition.

Only structural checks live here. Semantic checks that must surface as
``INVALID_SCENES`` with a scene id (durations, colors, empty paths, subtitle
windows) are done by the planner and composer.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shorts_compose.config import get_settings


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class KenBurnsEffectType(str, Enum):
    """Pan/zoom animations understood by the effect calculator."""

    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    PAN_LEFT = "pan_left"
    PAN_RIGHT = "pan_right"
    PAN_UP = "pan_up"
    PAN_DOWN = "pan_down"


class KenBurnsEffect(_Frozen):
    """Ken Burns animation for a still image.

    ``type`` is kept as a plain string so an unknown value reaches the
    planner, which decides between rejecting it and a static crop.
    Out-of-range ``zoom_scale``/``pan_amount`` are clamped, never rejected.
    """

    type: str
    zoom_scale: float = 1.3
    pan_amount: float = 0.2


class SolidColorVisual(_Frozen):
    type: Literal["solid_color"] = "solid_color"
    color: str = Field(description="Fill color as #RRGGBB")


class ImageVisual(_Frozen):
    type: Literal["image"] = "image"
    file_path: str
    ken_burns: KenBurnsEffect | None = None


class VideoVisual(_Frozen):
    type: Literal["video"] = "video"
    file_path: str


SceneVisual = Annotated[
    Union[SolidColorVisual, ImageVisual, VideoVisual],
    Field(discriminator="type"),
]


class SubtitleOverlay(_Frozen):
    """Transparent PNG shown during [start_ms, end_ms] of its scene."""

    image_path: str
    start_ms: int
    end_ms: int


class SceneInput(_Frozen):
    scene_id: str
    duration_ms: int
    visual: SceneVisual
    audio_path: str | None = None
    subtitles: list[SubtitleOverlay] = Field(default_factory=list)
    order: int | None = None

    @property
    def duration_s(self) -> float:
        return self.duration_ms / 1000


class CompositionRequest(_Frozen):
    """Everything needed for one composition run.

    Omitted ``frame_rate``, ``bgm_volume`` and ``voice_volume`` are replaced
    by ``VideoComposer`` with the defaults of its own ``Settings``.
    """

    scenes: list[SceneInput]
    width: int
    height: int
    output_path: str
    frame_rate: int = Field(default_factory=lambda: get_settings().default_frame_rate, gt=0)
    bgm_path: str | None = None
    bgm_volume: float = Field(
        default_factory=lambda: get_settings().default_bgm_volume, ge=0.0, le=1.0
    )
    voice_volume: float = Field(
        default_factory=lambda: get_settings().default_voice_volume, ge=0.0, le=1.0
    )

    @property
    def total_duration_ms(self) -> int:
        return sum(scene.duration_ms for scene in self.scenes)


class CompositionResult(_Frozen):
    output_path: str
    duration_seconds: float
    file_size_bytes: int
