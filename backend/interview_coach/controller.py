"""Turn orchestration: off-topic check, generation, retry, fallback, commit."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from interview_coach import config
from interview_coach.errors import OracleError, SessionNotFound
from interview_coach.extraction import ReplyPolicy, extract_json
from interview_coach.models import (
    FeedbackReply,
    GeneratedReply,
    InterviewConfig,
    Persona,
    Session,
    SessionStats,
    Speaker,
    Turn,
    TurnMetadata,
    TurnReply,
)
from interview_coach.offtopic import OffTopicClassifier, Verdict, should_warn, warning_message
from interview_coach.oracle import Oracle
from interview_coach.prompts import (
    compile_feedback_prompt,
    compile_retry_prompt,
    compile_system_prompt,
    compile_turn_prompt,
)
from interview_coach.store import SessionStore
from interview_coach.transcript import render, truncate

LOG = logging.getLogger("interview")

FALLBACK_REPLY = "Thanks — could you give a concrete example or the specific metric you mentioned?"
FALLBACK_FOLLOW_UPS = (
    "Can you describe a specific task or project where you used that skill?",
    "What was the measurable outcome (latency, throughput, error rate)?",
)
FALLBACK_REASON = "Fallback: model did not return structured JSON."
FEEDBACK_UNAVAILABLE = "Unable to generate feedback at this time."


def fallback_reply() -> GeneratedReply:
    return GeneratedReply(reply=FALLBACK_REPLY, follow_ups=list(FALLBACK_FOLLOW_UPS), reason=FALLBACK_REASON)


def normalize_user_message(text: Optional[str]) -> str:
    return (text or "").strip() or config.START_SENTINEL


class TurnController:
    """Runs one interview turn per call.

    Every call for a session id runs under that id's store lock, and the
    session is only mutated after the last oracle call of the turn returns, so
    a failure part-way through leaves the session as it was.
    """

    def __init__(
        self,
        oracle: Oracle,
        store: Optional[SessionStore] = None,
        policy: Optional[ReplyPolicy] = None,
        classifier: Optional[OffTopicClassifier] = None,
        model: str = config.GEMINI_MODEL,
        generation_window: int = config.GENERATION_WINDOW,
        feedback_window: int = config.FEEDBACK_WINDOW,
        off_topic_threshold: float = config.OFF_TOPIC_THRESHOLD,
    ) -> None:
        self.oracle = oracle
        self.store = store if store is not None else SessionStore(config.SESSION_IDLE_TTL_SECONDS)
        self.policy = policy or ReplyPolicy()
        self.classifier = classifier or OffTopicClassifier(oracle, model=model)
        self.model = model
        self.generation_window = generation_window
        self.feedback_window = feedback_window
        self.off_topic_threshold = off_topic_threshold

    async def handle_turn(
        self,
        session_id: str,
        user_message: Optional[str] = None,
        role: str = config.DEFAULT_ROLE,
        persona: Optional[str] = config.DEFAULT_PERSONA,
        experience: str = config.DEFAULT_EXPERIENCE,
    ) -> TurnReply:
        if not session_id:
            raise ValueError("sessionId is required")
        self.store.evict_idle()
        interview_config = InterviewConfig(role=role, persona=Persona.parse(persona), experience=experience)

        async with self.store.lock(session_id):
            session = self.store.create_if_absent(session_id, interview_config)
            text = normalize_user_message(user_message)

            verdict: Optional[Verdict] = None
            if len(session.transcript) > 1 and session.last_question:
                verdict = await self.classifier.classify(text, session.last_question, role, session.transcript)
                LOG.info(
                    "Off-topic check: session=%s off_topic=%s confidence=%.2f",
                    session_id,
                    verdict.is_off_topic,
                    verdict.confidence,
                )
                if should_warn(verdict, self.off_topic_threshold):
                    return self._commit_warning(session, interview_config, text, verdict)

            pending = session.transcript + (Turn(speaker=Speaker.USER, text=text),)
            generated = await self._generate(pending, interview_config, text)
            on_topic = verdict is not None and not verdict.is_off_topic
            return self._commit_exchange(session, interview_config, text, generated, on_topic)

    async def _generate(self, transcript: Sequence[Turn], cfg: InterviewConfig, user_text: str) -> GeneratedReply:
        history_text = render(truncate(transcript, self.generation_window))
        system_prompt = compile_system_prompt(cfg.role, cfg.persona, cfg.experience)
        raw = await self._call(compile_turn_prompt(system_prompt, history_text), config.GENERATION_TEMPERATURE)
        LOG.debug("Model raw output (first 500 chars): %s", raw[:500])
        generated = self._accept(raw)
        if generated is not None:
            return generated

        LOG.info("Parsed JSON missing or vague; retrying with focused prompt")
        retry_prompt = compile_retry_prompt(user_text, self.policy.entity_hint(user_text))
        raw = await self._call(retry_prompt, config.RETRY_TEMPERATURE)
        LOG.debug("Retry raw output (first 300 chars): %s", raw[:300])
        generated = self._accept(raw)
        if generated is not None:
            return generated

        LOG.warning("Retry produced no usable reply; using deterministic fallback")
        return fallback_reply()

    async def _call(self, prompt: str, temperature: float) -> str:
        try:
            return await self.oracle.generate_content(model=self.model, prompt=prompt, temperature=temperature)
        except OracleError as exc:
            LOG.warning("Oracle call failed, treating as no output: %s", exc)
            return ""

    def _accept(self, raw: str) -> Optional[GeneratedReply]:
        data = extract_json(raw)
        if data is None:
            return None
        generated = GeneratedReply.from_payload(data)
        if self.policy.is_vague(generated.reply):
            return None
        return generated

    def _commit_warning(self, session: Session, cfg: InterviewConfig, text: str, verdict: Verdict) -> TurnReply:
        count = session.off_topic_warnings + 1
        message = warning_message(count, session.last_question)
        session.config = cfg
        session.off_topic_warnings = count
        session.append(Turn(speaker=Speaker.USER, text=text))
        session.append(Turn(speaker=Speaker.BOT, text=message, metadata=TurnMetadata(count=count)))
        session.touch()
        LOG.info("Off-topic warning %s issued for session %s", count, session.session_id)
        return TurnReply(reply=message, reason=verdict.reason, off_topic_warning=True, warning_count=count)

    def _commit_exchange(
        self, session: Session, cfg: InterviewConfig, text: str, generated: GeneratedReply, on_topic: bool
    ) -> TurnReply:
        session.config = cfg
        if on_topic:
            session.off_topic_warnings = 0
        session.append(Turn(speaker=Speaker.USER, text=text))
        session.append(Turn(speaker=Speaker.BOT, text=generated.reply))
        session.last_question = generated.reply
        session.last_follow_ups = list(generated.follow_ups)
        session.add_topic(generated.reason)
        session.touch()
        return TurnReply(
            reply=generated.reply,
            follow_ups=list(generated.follow_ups),
            reason=generated.reason,
            off_topic_warning=False,
            warning_count=session.off_topic_warnings,
        )

    async def feedback(self, session_id: str) -> FeedbackReply:
        async with self.store.lock(session_id):
            session = self.store.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            cfg = session.config
            prompt = compile_feedback_prompt(
                cfg.role,
                cfg.experience,
                cfg.persona,
                session.off_topic_warnings,
                render(truncate(session.transcript, self.feedback_window)),
            )
            try:
                text = await self.oracle.generate_content(
                    model=self.model, prompt=prompt, temperature=config.FEEDBACK_TEMPERATURE
                )
            except OracleError as exc:
                LOG.warning("Feedback generation failed for session %s: %s", session_id, exc)
                text = ""
            return FeedbackReply(feedback=text or FEEDBACK_UNAVAILABLE, off_topic_count=session.off_topic_warnings)

    async def reset(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        async with self.store.lock(session_id):
            self.store.delete(session_id)

    def stats(self, session_id: str) -> SessionStats:
        return self.store.stats(session_id)
