"""
Command Succession -- Data-driven next-step guidance

Main loop: status -> record -> explain -> [COMMIT]
Integrity: check -> check --repair
Branches:  hooks install -> (git merge runs merge-index)

Each command knows its successors and the conditions that change them.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class NextStep:
    """Single next-step hint with optional condition."""
    command: Optional[str]    # e.g., "record" (None = terminal)
    label: str                # e.g., 'rationale record -f FILE -i "..."'
    condition: str = None     # When to show (None = always)
    why: str = None           # Brief rationale


@dataclass
class Succession:
    """Succession rules for a command."""
    default: NextStep
    alternatives: List[NextStep] = field(default_factory=list)


RULES: Dict[str, Succession] = {
    "init": Succession(
        default=NextStep("record", "rationale record -f FILE -i \"why\"",
                         why="Capture the first piece of reasoning"),
        alternatives=[
            NextStep("hooks", "rationale hooks install", condition="is_git_repo",
                     why="Merge the index cleanly across branches"),
        ]
    ),

    "record": Succession(
        default=NextStep("explain", "rationale explain FILE",
                         why="See what future readers will see"),
        alternatives=[
            NextStep("record", "rationale record -f FILE -i \"...\"", condition="skipped_targets",
                     why="Some files were not found; record them once they exist"),
        ]
    ),

    "explain": Succession(
        default=NextStep(None, "Ready to change the code",
                         why="Reasoning in hand"),
        alternatives=[
            NextStep("record", "rationale record -f FILE -i \"...\"", condition="not_found",
                     why="Be the first to explain this file"),
            NextStep("explain", "rationale explain FILE --all", condition="has_history",
                     why="Earlier reasoning exists"),
        ]
    ),

    "search": Succession(
        default=NextStep("show", "rationale show CODE",
                         why="Read an entry in full"),
        alternatives=[
            NextStep("search", "rationale search TERM", condition="no_results",
                     why="Try a broader term"),
        ]
    ),

    "list": Succession(
        default=NextStep("show", "rationale show CODE",
                         why="Read an entry in full"),
        alternatives=[
            NextStep("list", "rationale list --offset N", condition="has_more",
                     why="More entries available"),
        ]
    ),

    "status": Succession(
        default=NextStep(None, "All changes documented",
                         why="Nothing to record"),
        alternatives=[
            NextStep("record", "rationale record -i \"...\"", condition="has_gaps",
                     why="Changed files have no reasoning yet"),
            NextStep("check", "rationale check", condition="has_skipped",
                     why="Some records could not be read"),
        ]
    ),

    "check": Succession(
        default=NextStep(None, "Store is consistent", condition="ok"),
        alternatives=[
            NextStep("check", "rationale check --repair", condition="repairable",
                     why="Restore missing index memberships"),
        ]
    ),

    "hooks": Succession(
        default=NextStep(None, "Branch merges will union the index",
                         condition="installed"),
    ),
}


def get_hint(command: str, context: dict = None) -> Optional[str]:
    """
    Get contextual next-step hint for command.

    Args:
        command: Command that just ran (e.g., "explain")
        context: Result state flags (e.g., {"not_found": True})

    Returns:
        Formatted hint string or None
    """
    context = context or {}
    rules = RULES.get(command)

    if not rules:
        return None

    for alt in rules.alternatives:
        if alt.condition and context.get(alt.condition):
            return _format_hint(alt)

    if rules.default.condition and not context.get(rules.default.condition):
        return None

    return _format_hint(rules.default)


def _format_hint(step: NextStep) -> str:
    """Format NextStep as display hint."""
    if not step.command:
        return f"-> {step.label}" + (f"  ({step.why})" if step.why else "")

    hint = f"-> Next: {step.label}"
    if step.why:
        hint += f"  ({step.why})"
    return hint
