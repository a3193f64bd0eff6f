import json

import httpx
import pytest

from conftest import FakeSigner, FakeTransport, ForbiddenTransport, make_request
from withings_shim.data_types import WithingsDataType
from withings_shim.errors import MalformedVendorResponse, ShimException, TransportFailure, UnknownDataType
from withings_shim.models import AccessParameters
from withings_shim.shim import SHIM_KEY, WithingsShim

WEIGHT_RESPONSE = json.dumps({
    "status": 0,
    "body": {
        "measuregrps": [
            {"grpid": 1, "attrib": 0, "date": 1704100000, "category": 1,
             "measures": [{"value": 80500, "type": 1, "unit": -3}]},
        ]
    },
}).encode()


def make_shim(settings, transport):
    return WithingsShim(settings, signer=FakeSigner(), transport=transport)


def test_unknown_data_type_never_reaches_the_network(settings):
    shim = make_shim(settings, ForbiddenTransport())
    with pytest.raises(UnknownDataType):
        shim.get_data(make_request("oxygen_saturation"))
    assert shim.signer.calls == []


def test_missing_userid_never_reaches_the_network(settings):
    request = make_request("body_weight").model_copy(update={
        "access_parameters": AccessParameters(access_token="a", token_secret="b"),
    })
    with pytest.raises(ShimException, match="userid"):
        make_shim(settings, ForbiddenTransport()).get_data(request)


def test_normalized_data_points(settings):
    transport = FakeTransport(WEIGHT_RESPONSE)
    shim = make_shim(settings, transport)

    response = shim.get_data(make_request("body_weight"))

    assert response.shim == SHIM_KEY
    assert [p.body["body_weight"]["value"] for p in response.body] == [80.5]
    assert transport.released == 1


def test_signed_url_is_requested(settings):
    transport = FakeTransport(WEIGHT_RESPONSE)
    shim = make_shim(settings, transport)

    shim.get_data(make_request("body_weight"))

    url, token, secret = shim.signer.calls[0]
    assert url.startswith("http://wbsapi.withings.net/measure?action=getmeas&userid=12345")
    assert (token, secret) == ("access-token", "token-secret")
    assert transport.urls == [url + "&oauth_signature=fake"]


def test_raw_body_is_passed_through(settings):
    raw = {"status": 0, "body": {"series": []}, "note": "as sent"}
    shim = make_shim(settings, FakeTransport(json.dumps(raw).encode()))

    response = shim.get_data(make_request("sleep_duration", normalize=False))

    assert response.body == raw


def test_per_request_intraday_override(settings):
    transport = FakeTransport(b'{"status": 0, "body": {"series": {}}}')
    shim = make_shim(settings, transport)

    response = shim.get_data(make_request("step_count", intraday_available=True))

    assert "action=getintradayactivity" in transport.urls[0]
    assert response.body == []


def test_settings_intraday_default(settings):
    intraday_settings = settings.model_copy(update={"WITHINGS_INTRADAY_DATA_AVAILABLE": True})
    transport = FakeTransport(b'{"status": 0, "body": {"series": []}}')

    make_shim(intraday_settings, transport).get_data(make_request("calories_burned"))

    assert "action=getintradayactivity" in transport.urls[0]


def test_transport_error_is_wrapped_with_context(settings):
    transport = FakeTransport(error=httpx.ConnectError("connection refused"))
    shim = make_shim(settings, transport)

    with pytest.raises(TransportFailure, match="Could not fetch data for STEP_COUNT") as exc_info:
        shim.get_data(make_request("step_count"))

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert transport.released == 1


def test_http_error_status_is_a_transport_failure(settings):
    transport = FakeTransport(b"Bad Gateway", status_code=502)
    with pytest.raises(TransportFailure, match="HTTP 502"):
        make_shim(settings, transport).get_data(make_request("step_count"))
    assert transport.released == 1


def test_malformed_response_carries_context(settings):
    shim = make_shim(settings, FakeTransport(b"not json"))
    with pytest.raises(MalformedVendorResponse, match="BODY_WEIGHT from 2024-01-01"):
        shim.get_data(make_request("body_weight"))


def test_shim_metadata(settings):
    shim = make_shim(settings, ForbiddenTransport())

    assert shim.shim_key == "withings"
    assert shim.label == "Withings"
    assert shim.shim_data_types == [
        WithingsDataType.BLOOD_PRESSURE,
        WithingsDataType.BODY_HEIGHT,
        WithingsDataType.BODY_WEIGHT,
        WithingsDataType.CALORIES_BURNED,
        WithingsDataType.HEART_RATE,
        WithingsDataType.SLEEP_DURATION,
        WithingsDataType.STEP_COUNT,
    ]
    assert shim.request_token_url == "https://oauth.withings.com/account/request_token"


def test_userid_is_copied_from_authorization_callback():
    access = AccessParameters(access_token="a", token_secret="b", additional_parameters={"other": 1})

    updated = WithingsShim.load_additional_access_parameters({"userid": "777", "oauth_token": "x"}, access)

    assert updated.additional_parameters == {"other": 1, "userid": "777"}
    assert access.additional_parameters == {"other": 1}
    assert updated.account_capabilities().external_user_id == "777"


@pytest.mark.parametrize("status_code", [204, 301, 302, 304])
def test_only_2xx_statuses_are_accepted(settings, status_code):
    transport = FakeTransport(b"{}", status_code=status_code)
    shim = make_shim(settings, transport)

    if status_code == 204:
        response = shim.get_data(make_request("step_count", normalize=False))
        assert response.body == {}
    else:
        with pytest.raises(TransportFailure, match=f"HTTP {status_code}"):
            shim.get_data(make_request("step_count", normalize=False))
    assert transport.released == 1


def test_unknown_data_type_message_carries_time_range(settings):
    with pytest.raises(UnknownDataType, match="2024-01-01T00:00:00\\+00:00 to 2024-01-03") as exc_info:
        make_shim(settings, ForbiddenTransport()).get_data(make_request("oxygen_saturation"))

    assert exc_info.value.data_type_key == "oxygen_saturation"


@pytest.mark.parametrize("flag,expected_action", [
    ("false", "action=getactivity"),
    ("0", "action=getactivity"),
    (False, "action=getactivity"),
    ("true", "action=getintradayactivity"),
    (True, "action=getintradayactivity"),
])
def test_intraday_flag_values_are_parsed(settings, flag, expected_action):
    transport = FakeTransport(b'{"status": 0, "body": {"activities": [], "series": []}}')

    make_shim(settings, transport).get_data(make_request("step_count", intraday_available=flag))

    assert expected_action + "&" in transport.urls[0]


def test_invalid_intraday_flag_is_rejected(settings):
    with pytest.raises(ShimException, match="intraday_available"):
        make_shim(settings, ForbiddenTransport()).get_data(make_request("step_count", intraday_available="maybe"))


def test_transport_failure_is_logged_without_traceback(settings, caplog):
    transport = FakeTransport(error=httpx.ConnectError("connection refused"))

    with pytest.raises(TransportFailure):
        make_shim(settings, transport).get_data(make_request("step_count"))

    failures = [r for r in caplog.records if r.getMessage().startswith("Withings request failed")]
    assert len(failures) == 1
    assert failures[0].levelname == "WARNING"
    assert failures[0].exc_info is None
