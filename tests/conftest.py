from datetime import datetime, timezone

import pytest


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
