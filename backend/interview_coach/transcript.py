from __future__ import annotations

from typing import Sequence, Tuple

from interview_coach.models import Turn


def truncate(transcript: Sequence[Turn], max_turns: int) -> Tuple[Turn, ...]:
    """Last ``max_turns`` entries, oldest first."""
    start = max(0, len(transcript) - max(0, max_turns))
    return tuple(transcript[start:])


def render(transcript: Sequence[Turn]) -> str:
    """Numbered, speaker-labelled rendering used inside oracle prompts."""
    return "\n".join(
        f"{index}. {turn.speaker.value.upper()}:\n{turn.text.strip()}\n"
        for index, turn in enumerate(transcript, start=1)
    )


def render_recent(transcript: Sequence[Turn], count: int = 4) -> str:
    return "\n".join(f"{turn.speaker.value}: {turn.text}" for turn in transcript[-count:]) if count > 0 else ""
