"""Error codes dictionary for composition failures.

This is the single source of truth for all error codes and their
retryability. Used by ``ComposeError`` to build machine-readable error
payloads for callers.
"""

from typing import TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    retryable: bool
    stage: str
    suggested_fix: str


ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Request shape errors (detected before any I/O, fix input)
    # ==========================================================================
    "INVALID_SCENES": {
        "retryable": False,
        "stage": "validating",
        "suggested_fix": "Check scene durations, colors, file paths and subtitle windows",
    },
    "INVALID_DIMENSIONS": {
        "retryable": False,
        "stage": "validating",
        "suggested_fix": "Width and height must both be positive and even",
    },
    # ==========================================================================
    # Missing inputs (detected before rendering)
    # ==========================================================================
    "FILE_NOT_FOUND": {
        "retryable": False,
        "stage": "checking_files",
        "suggested_fix": "Make sure every referenced asset has been generated",
    },
    # ==========================================================================
    # Renderer errors
    # ==========================================================================
    "RENDER_FAILED": {
        "retryable": True,
        "stage": "rendering",
        "suggested_fix": "Inspect diagnostic_output for the rejected filter graph or input",
    },
    "SPAWN_FAILED": {
        "retryable": False,
        "stage": "rendering",
        "suggested_fix": "Install ffmpeg or set SHORTS_COMPOSE_FFMPEG_PATH",
    },
    "RENDER_TIMEOUT": {
        "retryable": True,
        "stage": "rendering",
        "suggested_fix": "Raise SHORTS_COMPOSE_STAGE_TIMEOUT_S or shorten the scene",
    },
    # ==========================================================================
    # Orchestration
    # ==========================================================================
    "CANCELLED": {
        "retryable": True,
    },
    "COMPOSE_FAILED": {
        "retryable": False,
    },
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Look up an error code, falling back to an empty spec."""
    return ERROR_CODES.get(code, {})
