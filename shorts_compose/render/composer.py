"""
Scene composition pipeline.

This module orchestrates one composition run:
1. Validate the request and every scene descriptor
2. Check that every referenced file exists
3. Render each scene into the workspace
4. Concatenate the scene files in request order
5. Mix in background music (optional)
6. Copy to the output path and probe the result

The workspace is created after validation and file checks and is removed
on every exit path.
"""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from shorts_compose.config import Settings, get_settings
from shorts_compose.exceptions import (
    AssetFileNotFoundError,
    ComposeCancelledError,
    ComposeError,
    ComposeFailedError,
    InvalidDimensionsError,
    InvalidScenesError,
)
from shorts_compose.gateways import CompositionSink, SceneSource
from shorts_compose.render.audio_mixer import AudioMixer
from shorts_compose.render.executor import StageExecutor
from shorts_compose.render.planner import plan_scene, validate_scene
from shorts_compose.render.stages import CONCAT_LIST_NAME, build_concat_stage, write_concat_list
from shorts_compose.render.workspace import workspace
from shorts_compose.schemas.composition import (
    CompositionRequest,
    CompositionResult,
    ImageVisual,
    VideoVisual,
)

logger = logging.getLogger(__name__)

CONCATENATED_NAME = "concatenated.mp4"
WITH_BGM_NAME = "with_bgm.mp4"


def scene_file_name(index: int) -> str:
    return f"scene_{index}.mp4"


class ComposeStage(Enum):
    """Composition run state."""

    VALIDATING = "validating"
    CHECKING_FILES = "checking_files"
    RENDERING_SCENES = "rendering_scenes"
    CONCATENATING = "concatenating"
    MIXING_AUDIO = "mixing_audio"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ComposeOutcome:
    """Either a CompositionResult or the ComposeError that stopped the run."""

    value: Optional[CompositionResult] = None
    error: Optional[ComposeError] = None
    failed_stage: Optional[ComposeStage] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def unwrap(self) -> CompositionResult:
        if self.error is not None:
            raise self.error
        if self.value is None:
            raise ComposeFailedError("No result")
        return self.value


@dataclass
class _ComposeRun:
    request: CompositionRequest
    cancel_check: Optional[Callable[[], Any]] = None
    stage: ComposeStage = ComposeStage.VALIDATING
    work_dir: Optional[Path] = None
    scene_paths: list[str] = field(default_factory=list)


def referenced_paths(request: CompositionRequest) -> list[str]:
    """Every input file a request needs, in checking order."""
    paths: list[str] = []
    for scene in request.scenes:
        visual = scene.visual
        if isinstance(visual, (ImageVisual, VideoVisual)) and visual.file_path:
            paths.append(visual.file_path)
        if scene.audio_path:
            paths.append(scene.audio_path)
        paths.extend(subtitle.image_path for subtitle in scene.subtitles)
    if request.bgm_path:
        paths.append(request.bgm_path)
    return paths


def _copy_file(src: str, dst: str) -> None:
    parent = os.path.dirname(dst)
    if parent:
        os.makedirs(parent, exist_ok=True)
    shutil.copyfile(src, dst)


def _remove_output(path: str) -> None:
    """Remove a copied artifact that could not be verified."""
    try:
        os.remove(path)
    except OSError as e:
        logger.warning(f"[COMPOSE] Failed to remove {path}: {e}")


class VideoComposer:
    """
    Turns a CompositionRequest into one rendered video file.

    Handles:
    - Scene rendering (solid color, image with optional Ken Burns, looped video)
    - Timed subtitle overlays
    - Order-preserving concatenation
    - BGM mixing
    """

    def __init__(
        self,
        executor: Optional[StageExecutor] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.executor = executor or StageExecutor(self.settings)
        self.audio_mixer = AudioMixer(self.settings)
        self._progress_callback: Any = None

    def set_progress_callback(self, callback: Any) -> None:
        """Set callback receiving ``(percent, stage_label)`` updates."""
        self._progress_callback = callback

    def _update_progress(self, run: _ComposeRun, stage: ComposeStage, percent: int, detail: str = "") -> None:
        run.stage = stage
        label = f"{stage.value} ({detail})" if detail else stage.value
        logger.info(f"[COMPOSE] {percent}% {label}")
        if self._progress_callback:
            self._progress_callback(percent, label)

    async def compose(
        self,
        request: CompositionRequest,
        cancel_check: Optional[Callable[[], Any]] = None,
    ) -> ComposeOutcome:
        """
        Execute the full composition pipeline.

        Args:
            request: Scenes, output geometry and audio settings
            cancel_check: Optional (async) callable returning True to cancel;
                polled between stages

        Returns:
            ComposeOutcome holding the result, or the error and the stage
            it happened in
        """
        run = _ComposeRun(request=self.apply_defaults(request), cancel_check=cancel_check)
        try:
            result = await self._compose(run)
        except ComposeError as e:
            return self._fail(run, e)
        except Exception as e:
            logger.exception(f"[COMPOSE] Unexpected failure during {run.stage.value}")
            return self._fail(run, ComposeFailedError(str(e) or e.__class__.__name__))

        self._update_progress(run, ComposeStage.DONE, 100)
        return ComposeOutcome(value=result)

    def _fail(self, run: _ComposeRun, error: ComposeError) -> ComposeOutcome:
        failed_stage = run.stage
        logger.error(f"[COMPOSE] Failed during {failed_stage.value}: [{error.code}] {error.message}")
        run.stage = ComposeStage.FAILED
        if self._progress_callback:
            self._progress_callback(100, f"{ComposeStage.FAILED.value} ({error.code})")
        return ComposeOutcome(error=error, failed_stage=failed_stage)

    async def compose_from(
        self,
        source: SceneSource,
        key: str,
        sink: Optional[CompositionSink] = None,
    ) -> ComposeOutcome:
        """Load a request from ``source``, compose it, and hand a success to ``sink``."""
        request = await source.load_request(key)
        outcome = await self.compose(request)
        if sink is not None and outcome.value is not None:
            await sink.save(key, outcome.value)
        return outcome

    async def _compose(self, run: _ComposeRun) -> CompositionResult:
        request = run.request

        self._update_progress(run, ComposeStage.VALIDATING, 0)
        self.validate(request)

        self._update_progress(run, ComposeStage.CHECKING_FILES, 5)
        self.check_files(request)

        async with workspace(self.settings) as work_dir:
            run.work_dir = work_dir
            await self._check_cancelled(run)

            self._update_progress(run, ComposeStage.RENDERING_SCENES, 10)
            run.scene_paths = await self._render_scenes(run, work_dir)
            await self._check_cancelled(run)

            self._update_progress(run, ComposeStage.CONCATENATING, 75)
            final_path = str(work_dir / CONCATENATED_NAME)
            await self._concatenate(run.scene_paths, final_path)
            await self._check_cancelled(run)

            if request.bgm_path:
                self._update_progress(run, ComposeStage.MIXING_AUDIO, 85)
                with_bgm_path = str(work_dir / WITH_BGM_NAME)
                logger.info(
                    f"[BGM] Mixing {request.bgm_path} "
                    f"(bgm={request.bgm_volume}, voice={request.voice_volume})"
                )
                await self.executor.run_stage(
                    self.audio_mixer.build_bgm_mix_stage(
                        final_path,
                        request.bgm_path,
                        with_bgm_path,
                        request.bgm_volume,
                        request.voice_volume,
                    )
                )
                final_path = with_bgm_path
                await self._check_cancelled(run)

            self._update_progress(run, ComposeStage.FINALIZING, 95)
            return await self._finalize(final_path, request.output_path)

    def apply_defaults(self, request: CompositionRequest) -> CompositionRequest:
        """Fill an omitted frame rate and volumes from this composer's settings."""
        defaults = {
            "frame_rate": self.settings.default_frame_rate,
            "bgm_volume": self.settings.default_bgm_volume,
            "voice_volume": self.settings.default_voice_volume,
        }
        missing = {
            name: value for name, value in defaults.items() if name not in request.model_fields_set
        }
        if not missing:
            return request
        return request.model_copy(update=missing)

    def validate(self, request: CompositionRequest) -> None:
        """
        Check request shape before any I/O.

        Raises:
            InvalidScenesError: Empty scene list, duplicate ids, or a bad scene
            InvalidDimensionsError: Non-positive width or height
        """
        if not request.scenes:
            raise InvalidScenesError("At least one scene is required")

        if request.width <= 0 or request.height <= 0:
            raise InvalidDimensionsError(request.width, request.height)

        # yuv420p chroma subsampling needs even frame sizes
        if request.width % 2 or request.height % 2:
            raise InvalidDimensionsError(
                request.width, request.height, reason="width and height must be even"
            )

        seen: set[str] = set()
        for scene in request.scenes:
            if scene.scene_id in seen:
                raise InvalidScenesError(
                    f"Duplicate scene id: {scene.scene_id}", scene_id=scene.scene_id
                )
            seen.add(scene.scene_id)
            validate_scene(scene, strict_effect_types=self.settings.strict_effect_types)

    def check_files(self, request: CompositionRequest) -> None:
        """
        Fail fast on the first missing input.

        Raises:
            AssetFileNotFoundError: With the missing path
        """
        for path in referenced_paths(request):
            if not os.path.exists(path):
                raise AssetFileNotFoundError(path)

    async def _check_cancelled(self, run: _ComposeRun) -> None:
        if run.cancel_check is None:
            return
        result = run.cancel_check()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            raise ComposeCancelledError()

    async def _render_scene(self, run: _ComposeRun, work_dir: Path, index: int) -> str:
        request = run.request
        scene = request.scenes[index]
        output_path = str(work_dir / scene_file_name(index))

        plan = plan_scene(
            scene,
            request.width,
            request.height,
            request.frame_rate,
            settings=self.settings,
        )
        logger.info(
            f"[SCENE] {index + 1}/{len(request.scenes)} {scene.scene_id}: "
            f"{scene.visual.type}, {scene.duration_ms}ms, {len(scene.subtitles)} subtitles"
        )
        logger.debug(f"[SCENE] {scene.scene_id} filter_complex: {plan.filter_complex}")
        await self.executor.run_stage(plan.to_stage(output_path, self.settings))
        return output_path

    async def _render_scenes(self, run: _ComposeRun, work_dir: Path) -> list[str]:
        """Render every scene; returned paths are always in request order."""
        count = len(run.request.scenes)
        parallel = max(1, self.settings.max_parallel_scenes)

        if parallel == 1 or count == 1:
            paths = []
            for index in range(count):
                paths.append(await self._render_scene(run, work_dir, index))
                self._update_progress(
                    run, ComposeStage.RENDERING_SCENES, 10 + int(60 * (index + 1) / count),
                    f"{index + 1}/{count}",
                )
                if index + 1 < count:
                    await self._check_cancelled(run)
            return paths

        semaphore = asyncio.Semaphore(parallel)
        completed = 0

        async def render_bounded(index: int) -> str:
            nonlocal completed
            async with semaphore:
                await self._check_cancelled(run)
                path = await self._render_scene(run, work_dir, index)
            completed += 1
            self._update_progress(
                run, ComposeStage.RENDERING_SCENES, 10 + int(60 * completed / count),
                f"{completed}/{count}",
            )
            return path

        tasks = [asyncio.create_task(render_bounded(i)) for i in range(count)]
        try:
            # gather preserves argument order regardless of completion order
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _concatenate(self, scene_paths: list[str], output_path: str) -> None:
        """Concatenate scene files with the concat demuxer.

        A single scene is copied as-is without invoking the renderer.
        """
        if not scene_paths:
            raise ComposeFailedError("No scene videos to concatenate")

        if len(scene_paths) == 1:
            await asyncio.to_thread(_copy_file, scene_paths[0], output_path)
            return

        list_path = os.path.join(os.path.dirname(output_path), CONCAT_LIST_NAME)
        write_concat_list(scene_paths, list_path)
        logger.info(f"[CONCAT] Concatenating {len(scene_paths)} scenes")
        await self.executor.run_stage(build_concat_stage(list_path, output_path))

    async def _finalize(self, final_path: str, output_path: str) -> CompositionResult:
        await asyncio.to_thread(_copy_file, final_path, output_path)
        try:
            duration_s = await self.executor.probe_duration(output_path)
            size = os.path.getsize(output_path)
        except BaseException:
            _remove_output(output_path)
            raise
        logger.info(f"[COMPOSE] Wrote {output_path}: {duration_s:.2f}s, {size} bytes")
        return CompositionResult(
            output_path=output_path,
            duration_seconds=duration_s,
            file_size_bytes=size,
        )
