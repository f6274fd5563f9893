"""Mock interview coach backend: turn orchestration around an LLM interviewer."""

__version__ = "0.1.0"
