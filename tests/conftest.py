import pytest

from helpers import FakeRedis, ManualClock, make_payload, make_user_record
from user_directory.services.reqres_client import UserSourceError


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def sample_payload():
    """Five well-formed records plus one without an email."""
    records = [make_user_record(i) for i in range(1, 6)]
    broken = make_user_record(6)
    del broken["email"]
    records.append(broken)
    return make_payload(records, page=1, per_page=6, total=12, total_pages=2)


@pytest.fixture
def transport_error():
    return UserSourceError("Request timed out after 10s", url="https://reqres.in/api/users", error_type="timeout")
