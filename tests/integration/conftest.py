"""
Integration Test Configuration

Slow tests (@pytest.mark.slow) are skipped in CI (CI=true). Tests that call a
live model provider are skipped unless its API key is exported.
"""

import os

import pytest


@pytest.fixture
def is_ci_environment() -> bool:
    """True if the CI environment variable is set to 'true'."""
    return os.getenv("CI", "").lower() == "true"


@pytest.fixture(autouse=True)
def skip_slow_tests_in_ci(request, is_ci_environment):
    """Skip slow integration tests when running in CI."""
    if is_ci_environment and request.node.get_closest_marker("slow"):
        pytest.skip("Skipping slow test in CI environment")


@pytest.fixture
def gemini_api_key() -> str:
    """GEMINI_API_KEY from the environment, or skip the test."""
    key = os.getenv("GEMINI_API_KEY", "")
    if not key:
        pytest.skip("GEMINI_API_KEY not set; skipping live model test")
    return key
