from __future__ import annotations

import pytest

from editlink.settings import PacingSettings, Settings


@pytest.fixture
def fast_pacing() -> PacingSettings:
    return PacingSettings(
        removal_pause_s=0.0,
        insert_highlight_s=0.0,
        line_delay_s=0.0,
        batch_lines=1,
    )


@pytest.fixture
def fast_settings(fast_pacing: PacingSettings) -> Settings:
    return Settings(pacing=fast_pacing)
