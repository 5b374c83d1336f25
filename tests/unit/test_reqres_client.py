"""
Tests for the requests-based user source.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from user_directory.services.reqres_client import RequestsUserSource, UserSourceError

URL = "https://reqres.in/api/users"


def _response(status_code: int, content: bytes) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = content
    return response


def test_fetch_returns_body_and_passes_query_headers_timeout():
    source = RequestsUserSource()

    with patch.object(source._session, "get", return_value=_response(200, b'{"page": 1}')) as mock_get:
        body = source.fetch(URL, {"page": 2, "per_page": 6}, {"x-api-key": "reqres-free-v1"}, 10)

    assert body == b'{"page": 1}'
    mock_get.assert_called_once_with(
        URL,
        params={"page": 2, "per_page": 6},
        headers={"x-api-key": "reqres-free-v1"},
        timeout=10,
    )


def test_non_success_status_still_returns_body():
    source = RequestsUserSource()

    with patch.object(source._session, "get", return_value=_response(503, b"Service Unavailable")):
        assert source.fetch(URL, {"page": 1}, {}, 10) == b"Service Unavailable"


def test_timeout_becomes_user_source_error():
    source = RequestsUserSource()

    with patch.object(source._session, "get", side_effect=requests.Timeout("read timed out")):
        with pytest.raises(UserSourceError) as exc_info:
            source.fetch(URL, {"page": 1}, {}, 0.5)

    assert exc_info.value.error_type == "timeout"
    assert exc_info.value.url == URL


@pytest.mark.parametrize(
    "error",
    [requests.ConnectionError("refused"), requests.exceptions.RetryError("too many 503s")],
)
def test_transport_errors_become_user_source_error(error):
    source = RequestsUserSource()

    with patch.object(source._session, "get", side_effect=error):
        with pytest.raises(UserSourceError):
            source.fetch(URL, {"page": 1}, {}, 10)


def test_session_retries_only_idempotent_gets():
    source = RequestsUserSource(max_retries=4, backoff_factor=0.1)

    retries = source._session.get_adapter("https://reqres.in").max_retries

    assert retries.total == 4
    assert 503 in retries.status_forcelist
    assert retries.raise_on_status is False
