"""Argument vector construction for the external generator.

Produces::

    <action> <seed> [--output <path>] [--json]
        [--<stack-field> <value>]*
        [--enrich --enrich-depth <depth> [--no-enrich-<flag>]*]
"""

from __future__ import annotations

from ..models import ENRICHMENT_FLAGS, EnrichmentConfig, StackConstraints

GENERATE_ACTION = "seed"
PREVIEW_ACTION = "preview"


def _flag_name(field_name: str) -> str:
    return field_name.replace("_", "-")


def stack_arguments(stack: StackConstraints | None) -> list[str]:
    """One ``--<field> <value>`` pair per set stack field, in fixed order."""
    if stack is None:
        return []
    args: list[str] = []
    for name, value in stack.present():
        args.extend([f"--{name}", value])
    return args


def enrichment_arguments(enrichment: EnrichmentConfig | None) -> list[str]:
    """Enrichment flags.

    Nothing is emitted unless enrichment is enabled.  When enabled the depth
    is always sent, and a sub-flag produces ``--no-enrich-<name>`` only when
    it is explicitly ``False``.  Sub-flags are never affirmatively enabled;
    unset ones follow the generator's depth preset.
    """
    if enrichment is None or not enrichment.enabled:
        return []
    args = ["--enrich", "--enrich-depth", enrichment.depth]
    for name in ENRICHMENT_FLAGS:
        if getattr(enrichment, name) is False:
            args.append(f"--no-enrich-{_flag_name(name)}")
    return args


def build_arguments(
    action: str,
    seed: int,
    output_path: str | None = None,
    stack: StackConstraints | None = None,
    enrichment: EnrichmentConfig | None = None,
) -> list[str]:
    """Translate a request into the generator's argument vector.

    ``--output`` and ``--json`` are only emitted for the generate action;
    previews never name a destination.
    """
    args = [action, str(seed)]
    if action == GENERATE_ACTION:
        if output_path is not None:
            args.extend(["--output", output_path])
        args.append("--json")
    args.extend(stack_arguments(stack))
    args.extend(enrichment_arguments(enrichment))
    return args
