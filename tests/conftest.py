import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from evolvingstring import evolving_core  # noqa: E402

# 1700000000 seconds after the Unix epoch
EPOCH = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

# base64 of {"initial_string":"test_string","secret":"secret","interval_seconds":60,"start_time":1700000000}
KNOWN_STATE = (
    "eyJpbml0aWFsX3N0cmluZyI6InRlc3Rfc3RyaW5nIiwic2VjcmV0Ijoic2VjcmV0Iiwi"
    "aW50ZXJ2YWxfc2Vjb25kcyI6NjAsInN0YXJ0X3RpbWUiOjE3MDAwMDAwMDB9"
)

# sha256("test_string" + "secret" + uint64_be(0)) / uint64_be(1)
TOKEN_INDEX_0 = "1e2d1c01ed66cdcaeb998d6d235db05dcda7933a3339176c52c1de19794476db"
TOKEN_INDEX_1 = "8c9037bf03957751175a97c8f82ae0dacd66180d4e7e4a7b213da43cdf547c1b"


@pytest.fixture
def generator():
    return evolving_core.create("test_string", "secret", 60, now=EPOCH)


@pytest.fixture
def app():
    from evolvingstring_web.app import create_app

    app = create_app()
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
