"""Tolerant JSON extraction from oracle text, plus the vagueness/entity policy."""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

JSON_FENCE_RE = re.compile(r"```json\s*(.*?)```", flags=re.DOTALL | re.IGNORECASE)


def _braced_span(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return text[first : last + 1]


def _fenced_block(text: str) -> Optional[str]:
    match = JSON_FENCE_RE.search(text)
    return match.group(1).strip() if match else None


def _whole_text(text: str) -> Optional[str]:
    return text


# Tried in order; the first candidate that decodes to a JSON object wins.
PARSE_STRATEGIES: Tuple[Callable[[str], Optional[str]], ...] = (_braced_span, _fenced_block, _whole_text)


def _decode_object(candidate: Optional[str]) -> Optional[Dict[str, Any]]:
    if candidate is None:
        return None
    try:
        data = json.loads(candidate)
    except (ValueError, TypeError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Find a JSON object in free-form model output, or return None."""
    if not text or not isinstance(text, str):
        return None
    for strategy in PARSE_STRATEGIES:
        data = _decode_object(strategy(text))
        if data is not None:
            return data
    return None


DEFAULT_VAGUE_PHRASES: Tuple[str, ...] = (
    "tell me more",
    "go on",
    "i see",
    "interesting",
    "keep going",
    "ok",
    "hmm",
)

DEFAULT_TECH_KEYWORDS: Tuple[str, ...] = (
    "node",
    "node.js",
    "redis",
    "postgres",
    "mysql",
    "kafka",
    "rabbitmq",
    "aws",
    "s3",
    "lambda",
    "docker",
    "kubernetes",
    "react",
    "ts",
    "typescript",
    "python",
    "java",
)

PERCENT_RE = re.compile(r"(\d{1,3})\s?%")
NUMBER_RE = re.compile(r"\b(\d{2,6})\b")


class ReplyPolicy:
    """Keyword table and pattern set used to judge replies and hint the retry prompt."""

    def __init__(
        self,
        vague_phrases: Sequence[str] = DEFAULT_VAGUE_PHRASES,
        tech_keywords: Sequence[str] = DEFAULT_TECH_KEYWORDS,
    ) -> None:
        self.vague_phrases = tuple(vague_phrases)
        self.tech_keywords = tuple(tech_keywords)
        alternation = "|".join(re.escape(phrase) for phrase in self.vague_phrases)
        self._vague_re = re.compile(rf"(?:^|\s)(?:{alternation})(?:\.|$|\s)", flags=re.IGNORECASE)
        self._keyword_res = [
            (keyword, re.compile(rf"(?<![\w]){re.escape(keyword)}(?![\w])")) for keyword in self.tech_keywords
        ]

    def is_vague(self, text: Optional[str]) -> bool:
        if not text or not text.strip():
            return True
        return bool(self._vague_re.search(text.strip()))

    def entities(self, text: Optional[str]) -> List[str]:
        if not text:
            return []
        lowered = text.lower()
        found: Dict[str, None] = {}
        for keyword, pattern in self._keyword_res:
            if pattern.search(lowered):
                found[keyword] = None
        percent = PERCENT_RE.search(text)
        if percent:
            found[f"{percent.group(1)}%"] = None
        number = NUMBER_RE.search(text)
        if number:
            found[number.group(1)] = None
        return list(found)

    def entity_hint(self, text: Optional[str]) -> str:
        entities = self.entities(text)
        return f"Detected entities: {', '.join(entities)}." if entities else ""
