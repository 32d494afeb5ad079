"""Generator output interpretation.

The generator's output contract has changed across versions, so results are
read through an ordered chain of interpreters.  Each one either returns a
definite result or ``None`` to defer to the next:

1. ``*_from_payload``     -- a JSON response object on stdout.
2. ``*_from_exit_status`` -- no usable JSON, but the process exited 0.
3. ``*_from_failure_text`` -- the last non-empty line of stderr/stdout.

The last link always answers, so a chain never comes back empty.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from ..models import GenerationResult, PreviewResult, ProcessOutcome
from ..paths import list_files

DEFAULT_SUCCESS_MESSAGE = "Generation completed"
UNKNOWN_ERROR = "Unknown error"

R = TypeVar("R")
C = TypeVar("C")


@dataclass(frozen=True)
class GenerationContext:
    output_path: Path
    elapsed_ms: int = 0


@dataclass(frozen=True)
class PreviewContext:
    seed: int
    elapsed_ms: int = 0


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def parse_payload(stdout: str) -> dict[str, Any] | None:
    """Extract the response object from captured stdout.

    Tries the whole stream first, then the last line that parses as a JSON
    object (for generators that log before answering).  Anything without a
    boolean ``success`` key is not a response.
    """
    text = stdout.strip()
    if not text:
        return None

    data: Any = None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        for line in reversed(text.splitlines()):
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                data = json.loads(line)
                break
            except json.JSONDecodeError:
                continue

    if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
        return None
    return data


def payload_field(payload: dict[str, Any], key: str) -> Any:
    """Look *key* up in ``payload["data"]`` first, then at the top level."""
    data = payload.get("data")
    if isinstance(data, dict) and key in data:
        return data[key]
    return payload.get(key)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _payload_duration(payload: dict[str, Any], fallback: int) -> int:
    value = payload.get("durationMs")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
        return int(value)
    return fallback


def last_nonempty_line(text: str) -> str | None:
    """Return the last line of *text* that is not blank, stripped."""
    for line in reversed(text.splitlines()):
        if line.strip():
            return line.strip()
    return None


def failure_message(outcome: ProcessOutcome) -> str:
    """Best-effort error text for a failed run."""
    line = last_nonempty_line(outcome.stderr) or last_nonempty_line(outcome.stdout)
    if line:
        return line
    code = "unknown" if outcome.exit_code is None else str(outcome.exit_code)
    return f"Generator exited with code {code} and produced no output"


# ---------------------------------------------------------------------------
# Generation chain
# ---------------------------------------------------------------------------


def generation_from_payload(
    outcome: ProcessOutcome, ctx: GenerationContext
) -> GenerationResult | None:
    payload = parse_payload(outcome.stdout)
    if payload is None:
        return None

    if payload["success"]:
        files = _string_list(payload_field(payload, "files_generated"))
        if not files:
            # Success without a manifest: report what actually landed on disk.
            files = list_files(ctx.output_path)
        message = payload_field(payload, "message")
        return GenerationResult(
            success=True,
            message=message if isinstance(message, str) and message else DEFAULT_SUCCESS_MESSAGE,
            files_generated=files,
            output_path=str(ctx.output_path),
            duration_ms=_payload_duration(payload, ctx.elapsed_ms),
        )

    error = payload.get("error")
    return GenerationResult(
        success=False,
        message=error if isinstance(error, str) and error else UNKNOWN_ERROR,
        files_generated=[],
        output_path=str(ctx.output_path),
        duration_ms=_payload_duration(payload, ctx.elapsed_ms),
    )


def generation_from_exit_status(
    outcome: ProcessOutcome, ctx: GenerationContext
) -> GenerationResult | None:
    if not outcome.success:
        return None
    return GenerationResult(
        success=True,
        message=DEFAULT_SUCCESS_MESSAGE,
        files_generated=list_files(ctx.output_path),
        output_path=str(ctx.output_path),
        duration_ms=ctx.elapsed_ms,
    )


def generation_from_failure_text(
    outcome: ProcessOutcome, ctx: GenerationContext
) -> GenerationResult:
    return GenerationResult(
        success=False,
        message=failure_message(outcome),
        files_generated=[],
        output_path=str(ctx.output_path),
        duration_ms=ctx.elapsed_ms,
    )


# ---------------------------------------------------------------------------
# Preview chain
# ---------------------------------------------------------------------------


def preview_from_payload(outcome: ProcessOutcome, ctx: PreviewContext) -> PreviewResult | None:
    payload = parse_payload(outcome.stdout)
    if payload is None:
        return None

    duration = _payload_duration(payload, ctx.elapsed_ms)
    if not payload["success"]:
        error = payload.get("error")
        return PreviewResult(
            success=False,
            message=error if isinstance(error, str) and error else UNKNOWN_ERROR,
            seed=ctx.seed,
            duration_ms=duration,
        )

    raw_files = payload_field(payload, "files")
    files: dict[str, str] = {}
    if isinstance(raw_files, dict):
        files = {path: content for path, content in raw_files.items() if isinstance(content, str)}
    stack = payload_field(payload, "stack")
    message = payload_field(payload, "message")
    return PreviewResult(
        success=True,
        message=message if isinstance(message, str) else "",
        files=files,
        stack=stack if isinstance(stack, dict) else None,
        seed=ctx.seed,
        duration_ms=duration,
    )


def preview_from_exit_status(outcome: ProcessOutcome, ctx: PreviewContext) -> PreviewResult | None:
    if not outcome.success:
        return None
    # A preview writes nothing to disk, so there is nothing to fall back on.
    return PreviewResult(
        success=False,
        message="Generator exited successfully but returned no preview payload",
        seed=ctx.seed,
        duration_ms=ctx.elapsed_ms,
    )


def preview_from_failure_text(outcome: ProcessOutcome, ctx: PreviewContext) -> PreviewResult:
    return PreviewResult(
        success=False,
        message=failure_message(outcome),
        seed=ctx.seed,
        duration_ms=ctx.elapsed_ms,
    )


# ---------------------------------------------------------------------------
# Chain runner
# ---------------------------------------------------------------------------

GENERATION_CHAIN: tuple[Callable[[ProcessOutcome, GenerationContext], GenerationResult | None], ...] = (
    generation_from_payload,
    generation_from_exit_status,
    generation_from_failure_text,
)

PREVIEW_CHAIN: tuple[Callable[[ProcessOutcome, PreviewContext], PreviewResult | None], ...] = (
    preview_from_payload,
    preview_from_exit_status,
    preview_from_failure_text,
)


class InterpreterChain(Generic[C, R]):
    """Runs interpreters in order and returns the first definite result."""

    def __init__(self, links: Sequence[Callable[[ProcessOutcome, C], R | None]]):
        if not links:
            raise ValueError("An interpreter chain needs at least one link")
        self.links = tuple(links)

    def interpret(self, outcome: ProcessOutcome, ctx: C) -> R:
        for link in self.links:
            result = link(outcome, ctx)
            if result is not None:
                return result
        raise ValueError("No interpreter in the chain produced a result")


class ResponseInterpreter:
    """Turns a :class:`ProcessOutcome` into a generation or preview result."""

    def __init__(
        self,
        generation_chain: Sequence[Callable[[ProcessOutcome, GenerationContext], GenerationResult | None]] = GENERATION_CHAIN,
        preview_chain: Sequence[Callable[[ProcessOutcome, PreviewContext], PreviewResult | None]] = PREVIEW_CHAIN,
    ):
        self.generation = InterpreterChain(generation_chain)
        self.preview = InterpreterChain(preview_chain)

    def interpret_generation(
        self, outcome: ProcessOutcome, output_path: Path, elapsed_ms: int | None = None
    ) -> GenerationResult:
        ctx = GenerationContext(
            output_path=Path(output_path),
            elapsed_ms=outcome.duration_ms if elapsed_ms is None else elapsed_ms,
        )
        return self.generation.interpret(outcome, ctx)

    def interpret_preview(
        self, outcome: ProcessOutcome, seed: int, elapsed_ms: int | None = None
    ) -> PreviewResult:
        ctx = PreviewContext(
            seed=seed,
            elapsed_ms=outcome.duration_ms if elapsed_ms is None else elapsed_ms,
        )
        return self.preview.interpret(outcome, ctx)
