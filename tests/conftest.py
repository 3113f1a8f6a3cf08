"""Pytest configuration and shared fixtures for shellpilot tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from shellpilot.ai.intent import Command, Intent
from shellpilot.core.orchestrator import ConfirmDecision
from shellpilot.execution.runner import RunOutcome
from shellpilot.queue.manager import TaskQueue
from shellpilot.security.base import CheckResult


class FakeRunner:
    """Process runner returning canned outcomes and recording every call.

    An exception given as an outcome is raised instead.
    """

    def __init__(self, outcomes: dict[str, RunOutcome | Exception] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: list[tuple[Command, float]] = []

    def run(self, command: Command, timeout: float) -> RunOutcome:
        self.calls.append((command, timeout))
        outcome = self.outcomes.get(command.cmd, RunOutcome(output=f"ran {command.cmd}"))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeIntentSource:
    """Intent source returning a fixed intent."""

    def __init__(self, intent: Intent, analysis: str | Exception = "Looks fine.") -> None:
        self.intent = intent
        self.analysis = analysis
        self.requests: list[tuple[str, str]] = []
        self.analyzed: list[tuple[str, str]] = []

    def parse_intent(self, text: str, system_prompt: str = "") -> Intent:
        self.requests.append((text, system_prompt))
        return self.intent

    def analyze_output(self, command: str, output: str) -> str:
        self.analyzed.append((command, output))
        if isinstance(self.analysis, Exception):
            raise self.analysis
        return self.analysis


class FakeConfirmer:
    """Confirmer answering from a list of decisions, in order."""

    def __init__(self, *decisions: ConfirmDecision) -> None:
        self.decisions = list(decisions)
        self.asked: list[Command] = []

    def confirm(self, command: Command, check_result: CheckResult) -> ConfirmDecision:
        self.asked.append(command)
        return self.decisions.pop(0)


@pytest.fixture
def auth_check() -> CheckResult:
    """Provide a check result that requires authorization."""
    return CheckResult(
        requires_auth=True,
        warning="Dangerous command: rm -rf /tmp/x",
        reason="Command is in the dangerous list",
    )


@pytest.fixture
def queue_path(tmp_path: Path) -> Path:
    """Provide the queue file location of a test session."""
    return tmp_path / "sessions" / "session-1" / "queue.json"


@pytest.fixture
def queue(queue_path: Path) -> TaskQueue:
    """Provide an empty task queue for session-1."""
    return TaskQueue(queue_path, "session-1")


@pytest.fixture
def fake_runner() -> Callable[..., FakeRunner]:
    """Provide a factory for fake process runners."""
    return FakeRunner


@pytest.fixture
def fake_intent_source() -> Callable[..., FakeIntentSource]:
    """Provide a factory for fake intent sources."""
    return FakeIntentSource


@pytest.fixture
def fake_confirmer() -> Callable[..., FakeConfirmer]:
    """Provide a factory for scripted confirmers."""
    return FakeConfirmer
