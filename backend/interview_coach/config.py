"""Environment-driven settings. Read once at import time."""

from __future__ import annotations

import os

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")
ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "20"))

# 0 disables idle eviction; sessions then live until reset.
SESSION_IDLE_TTL_SECONDS = float(os.getenv("SESSION_IDLE_TTL_SECONDS", "0"))

GENERATION_WINDOW = int(os.getenv("GENERATION_WINDOW", "18"))
FEEDBACK_WINDOW = int(os.getenv("FEEDBACK_WINDOW", "200"))
OFF_TOPIC_THRESHOLD = float(os.getenv("OFF_TOPIC_THRESHOLD", "0.7"))

GENERATION_TEMPERATURE = 0.2
RETRY_TEMPERATURE = 0.12
CLASSIFY_TEMPERATURE = 0.1
FEEDBACK_TEMPERATURE = 0.2

DEFAULT_ROLE = "Software Engineer"
DEFAULT_PERSONA = "Efficient User"
DEFAULT_EXPERIENCE = "Mid-level (3-5 years)"
START_SENTINEL = "Start the interview."

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
