from __future__ import annotations

import re
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Speaker(str, Enum):
    USER = "user"
    BOT = "bot"


class Persona(str, Enum):
    CONFUSED = "Confused User"
    EFFICIENT = "Efficient User"
    CHATTY = "Chatty User"
    EDGE_CASE = "Edge Case User"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Persona":
        """Accept UI labels ("Chatty User"), short names ("EdgeCase") or member names.

        Anything unrecognized maps to EFFICIENT.
        """
        if isinstance(value, Persona):
            return value
        key = re.sub(r"[\s_-]+", "", (value or "").lower())
        if key.endswith("user"):
            key = key[: -len("user")]
        return _PERSONA_KEYS.get(key, cls.EFFICIENT)


_PERSONA_KEYS: Dict[str, Persona] = {
    "confused": Persona.CONFUSED,
    "efficient": Persona.EFFICIENT,
    "chatty": Persona.CHATTY,
    "edgecase": Persona.EDGE_CASE,
}


class TurnMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str = "off_topic_warning"
    count: int


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    text: str
    metadata: Optional[TurnMetadata] = None


class InterviewConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    persona: Persona
    experience: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "persona": self.persona.value, "experience": self.experience}


class Session:
    """State of one mock interview.

    Only the turn controller mutates a session, and only while holding the
    store's lock for its id. The transcript is exposed read-only; new turns go
    through ``append``.
    """

    def __init__(self, session_id: str, config: InterviewConfig) -> None:
        self.session_id = session_id
        self.config = config
        self._transcript: List[Turn] = []
        self.last_question: str = ""
        self.off_topic_warnings: int = 0
        self.last_follow_ups: List[str] = []
        self._asked_topics: Dict[str, None] = {}  # insertion-ordered set
        self.last_active: float = time.monotonic()

    @property
    def transcript(self) -> Tuple[Turn, ...]:
        return tuple(self._transcript)

    @property
    def asked_topics(self) -> List[str]:
        return list(self._asked_topics)

    def append(self, turn: Turn) -> None:
        self._transcript.append(turn)

    def add_topic(self, topic: str) -> None:
        if topic:
            self._asked_topics[topic] = None

    def touch(self, now: Optional[float] = None) -> None:
        self.last_active = time.monotonic() if now is None else now


class GeneratedReply(BaseModel):
    reply: str
    follow_ups: List[str] = Field(default_factory=list)
    reason: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "GeneratedReply":
        reply = data.get("reply")
        if isinstance(reply, list):
            reply = " ".join(str(part) for part in reply)
        follow_ups_payload = data.get("follow_up_questions") or []
        follow_ups: List[str] = []
        if isinstance(follow_ups_payload, list):
            for item in follow_ups_payload:
                if not isinstance(item, str) or not item.strip():
                    continue
                follow_ups.append(item.strip())
                if len(follow_ups) >= 3:
                    break
        reason = data.get("follow_up_reason") or ""
        return cls(
            reply=reply.strip() if isinstance(reply, str) else "",
            follow_ups=follow_ups,
            reason=str(reason).strip(),
        )


class TurnReply(BaseModel):
    reply: str
    follow_ups: List[str] = Field(default_factory=list)
    reason: str = ""
    off_topic_warning: bool = False
    warning_count: int = 0

    def to_payload(self) -> Dict[str, Any]:
        if self.off_topic_warning:
            return {
                "reply": self.reply,
                "off_topic_warning": True,
                "warning_count": self.warning_count,
                "reason": self.reason,
            }
        return {
            "reply": self.reply,
            "follow_ups": list(self.follow_ups),
            "reason": self.reason,
            "off_topic_warning": False,
            "warning_count": self.warning_count,
        }


class FeedbackReply(BaseModel):
    feedback: str
    off_topic_count: int


class SessionStats(BaseModel):
    message_count: int
    off_topic_warnings: int
    config: Dict[str, str]
    topics_covered: List[str]
