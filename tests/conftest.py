from __future__ import annotations

import pytest

from gemini_relay.common.config import Settings, build_candidates
from upstream_fakes import MODELS, VERSIONS


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key="test-key",
        candidates=build_candidates(VERSIONS, MODELS),
        base_url="https://upstream.test",
        timeout_seconds=30.0,
    )
