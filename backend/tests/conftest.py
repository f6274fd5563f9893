"""
Pytest configuration and fixtures
"""
import pytest

from interview_coach.controller import TurnController
from interview_coach.store import SessionStore
from tests.fakes import ScriptedOracle


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def controller(oracle: ScriptedOracle, store: SessionStore) -> TurnController:
    return TurnController(oracle=oracle, store=store, model="test-model")
