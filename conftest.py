"""
Repository-level pytest configuration (demo-safe).

Why this exists:
  - Provide safe defaults for local runs (no secrets embedded)
  - Route loguru output through the project's standard format
  - Keep configuration explicit and discoverable

Any default below can be overridden from the shell or CI, e.g.
``INTERACTION_DETAILED_HEALTH_CHECKS=true pytest``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from e2e_tools.common import ConfigLoader, init_logger


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    The configuration singleton is reset afterwards so values picked up
    during the session do not leak into programmatic reuse.
    """
    defaults = {
        "UI_BASE_URL": "http://localhost:8080",
        "UI_HEADLESS": "true",
        "LOGGING_LEVEL": "INFO",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    init_logger()
    yield
    ConfigLoader.reset()
