"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import random
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def log_messages():
    """Capture loguru output as a list of formatted messages."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def rng():
    """A seeded random source."""
    return random.Random(1234)


@pytest.fixture
def single_choice_question():
    """Provide a sample single choice question."""
    return {
        "id": "q-osi",
        "questionType": "single_choice",
        "text": "Which layer of the OSI model handles routing?",
        "options": ["Physical", "Data Link", "Network", "Transport"],
        "correctAnswer": 2,
        "explanation": "Routers forward packets at Layer 3.",
    }


@pytest.fixture
def multi_choice_question():
    """Provide a sample multi choice question."""
    return {
        "id": "q-private",
        "questionType": "multi_choice",
        "text": "Which ranges are RFC 1918 private?",
        "options": ["10.0.0.0/8", "172.16.0.0/12", "8.8.8.0/24", "192.168.0.0/16"],
        "correctAnswers": [0, 1, 3],
        "explanation": "8.8.8.0/24 is public.",
    }


@pytest.fixture
def sample_template(single_choice_question, multi_choice_question):
    """A four-question template covering several kinds."""
    return {
        "id": "ccna-1",
        "title": "CCNA Module 1",
        "questions": [
            single_choice_question,
            multi_choice_question,
            {
                "id": "q-tf",
                "questionType": "true_false",
                "text": "A switch operates at Layer 2.",
                "correctAnswer": True,
                "explanation": "Switches forward frames by MAC address.",
            },
            {
                "id": "q-blank",
                "questionType": "fill_in_blank",
                "text": "The default subnet mask for a /24 is ____.",
                "correctAnswer": "255.255.255.0",
                "explanation": "24 one-bits.",
            },
        ],
        "passingScore": 70,
        "feedbackMode": "instant",
    }
