"""
Hook entry points.

Each lifecycle hook reads one JSON payload from stdin, does its work and
exits 0. A hook never blocks the session: every failure is logged and
swallowed in run_hook, which is the only place a broad exception handler
lives.

Called by: hooks/hooks.json via the thin wrappers in scripts/
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Callable
from typing import Any, TextIO

from pydantic import ValidationError

from .config import MemoryConfig, resolve_memory_dir
from .document_store import MemoryStore
from .exceptions import HookInputError
from .hook_schema import HookInput
from .pipeline import context_pipeline, development_pipeline
from .result import StepResult
from .session_context import build_session_start_context, staleness_warning
from .sync_engine import SyncEngine, SyncReport, find_repo

logger = logging.getLogger("session_memory")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

HookHandler = Callable[[HookInput, MemoryConfig], str | None]


def configure_logging(config: MemoryConfig) -> None:
    """
    Attach handlers to the package logger.

    stdout belongs to the host, so debug output goes to stderr
    (SESSION_MEMORY_DEBUG=1) or to the configured log file.
    """
    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return

    if os.environ.get("SESSION_MEMORY_DEBUG"):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

    if config.log_file:
        try:
            handler = logging.FileHandler(os.path.expanduser(config.log_file), encoding="utf-8")
        except OSError as e:
            logger.debug("Cannot open log file %s: %s", config.log_file, e)
        else:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
            logger.setLevel(logging.DEBUG)


def read_hook_input(stream: TextIO | None = None) -> HookInput:
    """
    Parse the hook payload from stdin (JSON format per Claude Code docs).

    Raises:
        HookInputError: If the payload is empty, not JSON, or not an object
    """
    stream = stream or sys.stdin
    data = stream.read().strip()
    if not data:
        raise HookInputError("empty hook payload")
    try:
        raw: Any = json.loads(data)
    except json.JSONDecodeError as e:
        raise HookInputError(f"hook payload is not JSON: {e}") from e
    if not isinstance(raw, dict):
        raise HookInputError("hook payload is not a JSON object")
    try:
        return HookInput.model_validate(raw)
    except ValidationError as e:
        raise HookInputError(str(e)) from e


def _log_result(name: str, result: StepResult) -> None:
    if result.is_failed:
        failure = result.failure.value if result.failure else "unknown"
        logger.debug("%s failed [%s]: %s", name, failure, result.detail)
    elif result.is_empty:
        logger.debug("%s: nothing to do (%s)", name, result.detail)
    else:
        logger.debug("%s: ok", name)


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------


def on_stop_capture_context(hook: HookInput, config: MemoryConfig) -> None:
    """Stop: refresh the handoff document's auto-captured section."""
    if not config.context_capture_enabled:
        return None
    _log_result("context capture", context_pipeline(config).run(hook))
    return None


def on_stop_log_developments(hook: HookInput, config: MemoryConfig) -> None:
    """Stop: append completed work to today's development log."""
    if not config.dev_log_enabled:
        return None
    _log_result("development log", development_pipeline(config).run(hook))
    return None


def sync_for_event(hook: HookInput, config: MemoryConfig) -> StepResult[SyncReport] | None:
    """
    Pull on session start, push on every other event.

    Returns:
        The sync result, or None when sync is disabled or unconfigured
    """
    if not config.sync_enabled:
        return None
    project_dir = hook.project_dir
    if not project_dir:
        logger.debug("sync: payload has no working directory")
        return None
    repo = find_repo(config)
    if repo is None:
        logger.debug("sync: no memory repository found")
        return None

    engine = SyncEngine(repo, resolve_memory_dir(project_dir, config))
    result = engine.pull() if hook.is_session_start else engine.push()
    if result.value is not None:
        for warning in result.value.warnings:
            logger.warning("sync: %s", warning)
    return result


def on_sync(hook: HookInput, config: MemoryConfig) -> None:
    result = sync_for_event(hook, config)
    if result is not None:
        _log_result(f"sync ({'pull' if hook.is_session_start else 'push'})", result)
    return None


def on_stop(hook: HookInput, config: MemoryConfig) -> None:
    """
    Stop: log developments, refresh the handoff, then publish.

    The host runs every hook registered for an event in parallel, so the
    steps that share the memory directory run in sequence from one hook.
    """
    on_stop_log_developments(hook, config)
    on_stop_capture_context(hook, config)
    on_sync(hook, config)
    return None


def on_session_start(hook: HookInput, config: MemoryConfig) -> str | None:
    """SessionStart: pull, then inject the handoff state and recent development logs."""
    project_dir = hook.project_dir
    if not project_dir:
        return None
    on_sync(hook, config)
    store = MemoryStore(resolve_memory_dir(project_dir, config))
    context = build_session_start_context(
        store, stale_after_hours=config.session_start_stale_hours
    )
    return context or None


def on_prompt_submit(hook: HookInput, config: MemoryConfig) -> str | None:
    """UserPromptSubmit: remind the agent when the handoff has gone stale."""
    project_dir = hook.project_dir
    if not project_dir:
        return None
    store = MemoryStore(resolve_memory_dir(project_dir, config))
    return staleness_warning(store, stale_after_hours=config.handoff_stale_hours)


# -----------------------------------------------------------------------------
# Runner
# -----------------------------------------------------------------------------


def run_hook(
    handler: HookHandler,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    config: MemoryConfig | None = None,
) -> int:
    """
    Run one hook handler against the stdin payload.

    Whatever the handler returns is printed for the host. The exit code is
    always 0.
    """
    stdout = stdout or sys.stdout
    try:
        config = config or MemoryConfig.load()
        configure_logging(config)
        hook = read_hook_input(stdin)
        output = handler(hook, config)
        if output:
            print(output, file=stdout)
    except HookInputError as e:
        logger.debug("%s: ignoring payload: %s", getattr(handler, "__name__", "hook"), e)
    except Exception as e:
        logger.debug("%s failed: %s", getattr(handler, "__name__", "hook"), e, exc_info=True)
    return 0


def main(handler: HookHandler) -> None:
    sys.exit(run_hook(handler))


__all__ = [
    "configure_logging",
    "main",
    "on_prompt_submit",
    "on_session_start",
    "on_stop",
    "on_stop_capture_context",
    "on_stop_log_developments",
    "on_sync",
    "read_hook_input",
    "run_hook",
    "sync_for_event",
]
