from contextlib import contextmanager
from datetime import datetime, timezone

import pytest

from withings_shim.capabilities import AccountCapabilities
from withings_shim.config import Settings
from withings_shim.models import AccessParameters, ShimDataRequest


def make_request(data_type_key="step_count", start=None, end=None, normalize=True, **additional):
    params = {"userid": "12345", **additional}
    return ShimDataRequest(
        data_type_key=data_type_key,
        start_date_time=start or datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date_time=end or datetime(2024, 1, 3, tzinfo=timezone.utc),
        normalize=normalize,
        access_parameters=AccessParameters(
            access_token="access-token",
            token_secret="token-secret",
            additional_parameters=params,
        ),
    )


class FakeSigner:
    def __init__(self):
        self.calls = []

    def sign(self, url, token, secret):
        self.calls.append((url, token, secret))
        return url + "&oauth_signature=fake"


class FakeTransport:
    """Returns a canned response and records requested URLs."""

    def __init__(self, body=b"{}", status_code=200, error=None):
        self.body = body
        self.status_code = status_code
        self.error = error
        self.urls = []
        self.released = 0

    @contextmanager
    def get(self, url):
        self.urls.append(url)
        try:
            if self.error is not None:
                raise self.error
            yield self.status_code, self.body
        finally:
            self.released += 1

    def close(self):
        pass


class ForbiddenTransport:
    @contextmanager
    def get(self, url):
        pytest.fail(f"transport must not be called, got {url}")
        yield


@pytest.fixture
def settings():
    return Settings(
        WITHINGS_CLIENT_ID="client",
        WITHINGS_CLIENT_SECRET="secret",
        WITHINGS_DATA_URL="http://wbsapi.withings.net",
    )


@pytest.fixture
def daily_account():
    return AccountCapabilities(external_user_id="12345", intraday_available=False)


@pytest.fixture
def intraday_account():
    return AccountCapabilities(external_user_id="12345", intraday_available=True)
