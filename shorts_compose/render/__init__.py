from shorts_compose.render.audio_mixer import AudioMixer
from shorts_compose.render.composer import ComposeOutcome, ComposeStage, VideoComposer
from shorts_compose.render.effects import EffectExpression, compute_effect
from shorts_compose.render.executor import StageExecutor
from shorts_compose.render.planner import RenderPlan, plan_scene
from shorts_compose.render.stages import StagePlan
from shorts_compose.render.workspace import with_workspace, workspace

__all__ = [
    "VideoComposer",
    "ComposeOutcome",
    "ComposeStage",
    "StageExecutor",
    "StagePlan",
    "RenderPlan",
    "plan_scene",
    "EffectExpression",
    "compute_effect",
    "AudioMixer",
    "workspace",
    "with_workspace",
]
