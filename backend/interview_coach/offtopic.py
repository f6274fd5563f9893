"""Relevance check of a user answer against the last question, and the warning tiers."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pydantic import BaseModel

from interview_coach import config
from interview_coach.errors import OracleError
from interview_coach.extraction import extract_json
from interview_coach.models import Turn
from interview_coach.oracle import Oracle
from interview_coach.prompts import compile_off_topic_prompt
from interview_coach.transcript import render_recent

LOG = logging.getLogger("interview")


class Verdict(BaseModel):
    is_off_topic: bool = False
    confidence: float = 0.0
    reason: str = ""

    @classmethod
    def lenient(cls, reason: str) -> "Verdict":
        return cls(is_off_topic=False, confidence=0.0, reason=reason)


def _coerce_confidence(value: Any) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if parsed != parsed:  # NaN
        return 0.0
    return max(0.0, min(1.0, parsed))


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


class OffTopicClassifier:
    def __init__(self, oracle: Oracle, model: str = config.GEMINI_MODEL) -> None:
        self.oracle = oracle
        self.model = model

    async def classify(self, user_text: str, last_question: str, role: str, recent_turns: Sequence[Turn]) -> Verdict:
        prompt = compile_off_topic_prompt(user_text, last_question, role, render_recent(recent_turns, 4))
        try:
            raw = await self.oracle.generate_content(
                model=self.model, prompt=prompt, temperature=config.CLASSIFY_TEMPERATURE
            )
        except OracleError as exc:
            LOG.warning("Off-topic check failed, treating answer as relevant: %s", exc)
            return Verdict.lenient("Error in detection")

        data = extract_json(raw)
        if data is None:
            LOG.warning("Off-topic check returned unparsable output: %s", (raw or "")[:200])
            return Verdict.lenient("Unable to determine")
        return Verdict(
            is_off_topic=_coerce_flag(data.get("is_off_topic")),
            confidence=_coerce_confidence(data.get("confidence")),
            reason=str(data.get("reason") or ""),
        )


FINAL_WARNING = (
    "This is your final reminder - please provide a relevant answer to the interview question, "
    "or we may need to end the session."
)


def warning_message(count: int, last_question: str) -> str:
    """Message for the ``count``-th consecutive off-topic answer (1-based)."""
    if count <= 1:
        return (
            "I notice your response seems to be going off-topic. "
            "Let's stay focused on the interview question. " + last_question
        )
    if count == 2:
        return "I appreciate your enthusiasm, but we need to stay on topic for the interview. Please answer: " + last_question
    return FINAL_WARNING


def should_warn(verdict: Verdict, threshold: float = config.OFF_TOPIC_THRESHOLD) -> bool:
    return verdict.is_off_topic and verdict.confidence > threshold
