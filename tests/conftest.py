"""Shared fixtures for the codeplot test suite."""

import pytest
from unittest.mock import MagicMock, patch


QUESTION_TEXT = """\
# Rate limit scope

Rate limiting can be applied per user or per API key.

**Which scope do you prefer?**

1. **Per user** ⭐ RECOMMENDED
   Limits follow the authenticated user across keys.

2. **Per API key**
   Each key gets its own budget.

💬 Or type your own response.
"""

ADR_TEXT = """\
# ADR: 0001 - Token bucket rate limiting

## Status
Proposed

## Context
The public API has no protection against bursts.

## Decision
We will use a token bucket per user, stored in Redis.

## Consequences
Bursty clients are throttled; Redis becomes a hard dependency.

## Implementation Plan
1. Add the limiter middleware.
2. Configure bucket sizes per plan.
"""


def question_answer(header="Rate limit scope", options=None):
    """A final StructuredAnswer as a backend would return it."""
    if options is None:
        options = [
            {"id": "1", "title": "Per user", "description": "Follows the user.", "recommended": True},
            {"id": "2", "title": "Per API key", "description": "Own budget.", "recommended": False},
        ]
    return {
        "header": header,
        "body_text": "Rate limiting can be applied per user or per API key.",
        "option_prompt": "Which scope do you prefer?",
        "options": options,
        "is_complete": True,
    }


def readiness(ready: bool, missing=None):
    return {
        "ready_for_adr": ready,
        "missing_information": missing if missing is not None else ([] if ready else ["Error handling"]),
        "reasoning": "ok" if ready else "need more",
    }


@pytest.fixture
def document():
    return {
        "content": ADR_TEXT,
        "title": "Token bucket rate limiting",
        "number": "20250101-001",
        "implementation_plan": "1. Add the limiter middleware.\n2. Configure bucket sizes per plan.",
    }


@pytest.fixture
def backend(document):
    """Mock AgentBackend: not ready until told otherwise."""
    mock = MagicMock()
    mock.ask_clarifying_question.return_value = question_answer()
    mock.evaluate_readiness.return_value = readiness(False)
    mock.generate_document.return_value = document
    mock.generate_implementation_steps.return_value = "- Step 1: Add middleware"
    return mock


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "provider": "google",
        "planning_model": "gemini-test",
        "generator_model": "gemini-test",
        "planning_temperature": 0.5,
        "generator_temperature": 0.7,
        "streaming": True,
        "workflow": "adr",
        "guidance_enabled": False,
        "default_option_prompt": "Choose your preferred option:",
    }
    with patch("codeplot.config._config", test_config):
        yield test_config
