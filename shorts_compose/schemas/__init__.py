from shorts_compose.schemas.composition import (
    CompositionRequest,
    CompositionResult,
    ImageVisual,
    KenBurnsEffect,
    KenBurnsEffectType,
    SceneInput,
    SceneVisual,
    SolidColorVisual,
    SubtitleOverlay,
    VideoVisual,
)

__all__ = [
    "CompositionRequest",
    "CompositionResult",
    "ImageVisual",
    "KenBurnsEffect",
    "KenBurnsEffectType",
    "SceneInput",
    "SceneVisual",
    "SolidColorVisual",
    "SubtitleOverlay",
    "VideoVisual",
]
