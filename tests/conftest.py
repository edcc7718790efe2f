"""
Shared pytest fixtures for ansible-nvcf tests.

This module provides fixtures for NGC credentials across unit and
integration tests.
"""

import os
import sys
from pathlib import Path

import pytest

# Add plugins and tests directories to Python path for imports
plugins_path = Path(__file__).parent.parent / "plugins"
tests_path = Path(__file__).parent
sys.path.insert(0, str(plugins_path))
sys.path.insert(0, str(tests_path))


@pytest.fixture(scope="session")
def ngc_credentials():
    """
    NGC credentials from the environment.

    Integration tests are skipped when NGC_API_KEY or NGC_ORG is unset.
    """
    api_key = os.getenv("NGC_API_KEY")
    org = os.getenv("NGC_ORG")
    if not api_key or not org:
        pytest.skip("NGC_API_KEY and NGC_ORG are required for integration tests")
    return {
        "api_key": api_key,
        "org": org,
        "team": os.getenv("NGC_TEAM"),
        "endpoint": os.getenv("NGC_ENDPOINT"),
    }
