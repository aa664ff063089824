"""Custom exceptions for the scene composition pipeline.

Every failure a composition run can produce is a ``ComposeError`` carrying a
machine-readable code. ``VideoComposer.compose`` returns these inside a
failed ``ComposeOutcome`` instead of raising them.
"""

from typing import Any

from shorts_compose.constants.error_codes import get_error_spec


class ComposeError(Exception):
    """Base exception for all composition errors."""

    code: str = "COMPOSE_FAILED"
    message: str = "Composition failed"

    def __init__(self, message: str | None = None, *, code: str | None = None):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return get_error_spec(self.code).get("retryable", False)

    def details(self) -> dict[str, Any]:
        """Code-specific fields, overridden by subclasses."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for callers that persist or return the failure."""
        spec = get_error_spec(self.code)
        return {
            "type": self.code,
            "message": self.message,
            "retryable": spec.get("retryable", False),
            "suggested_fix": spec.get("suggested_fix"),
            **self.details(),
        }


# =============================================================================
# Request Shape Errors
# =============================================================================


class InvalidScenesError(ComposeError):
    """Scene list is empty or a scene descriptor is malformed."""

    code = "INVALID_SCENES"
    message = "Invalid scenes"

    def __init__(self, message: str | None = None, *, scene_id: str | None = None):
        self.scene_id = scene_id
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"scene_id": self.scene_id}


class InvalidDimensionsError(ComposeError):
    code = "INVALID_DIMENSIONS"
    message = "Invalid dimensions"

    def __init__(self, width: int, height: int, *, reason: str | None = None):
        self.width = width
        self.height = height
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Invalid dimensions: {width}x{height}{detail}")

    def details(self) -> dict[str, Any]:
        return {"width": self.width, "height": self.height}


class AssetFileNotFoundError(ComposeError):
    """A referenced asset file does not exist."""

    code = "FILE_NOT_FOUND"
    message = "File not found"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")

    def details(self) -> dict[str, Any]:
        return {"path": self.path}


# =============================================================================
# Renderer Errors
# =============================================================================


class RenderFailedError(ComposeError):
    """The renderer exited with a non-zero status."""

    code = "RENDER_FAILED"
    message = "Renderer failed"

    def __init__(self, exit_code: int, diagnostic_output: str, *, stage: str | None = None):
        self.exit_code = exit_code
        self.diagnostic_output = diagnostic_output
        self.stage = stage
        label = f" ({stage})" if stage else ""
        super().__init__(f"Renderer exited with code {exit_code}{label}")

    def details(self) -> dict[str, Any]:
        return {
            "exit_code": self.exit_code,
            "diagnostic_output": self.diagnostic_output,
            "stage": self.stage,
        }


class SpawnFailedError(ComposeError):
    """The renderer process could not be started."""

    code = "SPAWN_FAILED"
    message = "Renderer could not be started"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Renderer could not be started: {reason}")

    def details(self) -> dict[str, Any]:
        return {"reason": self.reason}


class RenderTimeoutError(ComposeError):
    code = "RENDER_TIMEOUT"
    message = "Renderer timed out"

    def __init__(self, timeout_s: float, *, stage: str | None = None):
        self.timeout_s = timeout_s
        self.stage = stage
        label = f" ({stage})" if stage else ""
        super().__init__(f"Renderer exceeded {timeout_s}s deadline{label}")

    def details(self) -> dict[str, Any]:
        return {"timeout_s": self.timeout_s, "stage": self.stage}


# =============================================================================
# Orchestration Errors
# =============================================================================


class ComposeCancelledError(ComposeError):
    code = "CANCELLED"
    message = "Composition cancelled"


class ComposeFailedError(ComposeError):
    """Unexpected failure during orchestration (copy, probe, filesystem)."""

    code = "COMPOSE_FAILED"
    message = "Composition failed"
