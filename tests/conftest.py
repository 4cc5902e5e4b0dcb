from datetime import datetime, timezone

import pytest

from lingosrs.domain.review.models import ReviewState


@pytest.fixture
def now():
    return datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def fresh_state(now):
    return ReviewState(next_review_at=now)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for key in (
        "LINGOSRS_STORE_BACKEND",
        "LINGOSRS_STORE_PATH",
        "LINGOSRS_USER_ID",
        "LINGOSRS_DEFAULT_LANGUAGE",
        "LINGOSRS_NEW_CARDS_PER_SESSION",
        "LINGOSRS_MAX_REVIEWS",
    ):
        monkeypatch.delenv(key, raising=False)
    return home
