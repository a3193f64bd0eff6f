from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl, urlsplit

import pytest

from conftest import make_request
from withings_shim.capabilities import AccountCapabilities
from withings_shim.data_types import INTRADAY_ACTIVITY_ACTION, MEASURE_ACTION, WithingsDataType, descriptor_for
from withings_shim.errors import UnknownDataType
from withings_shim.request_builder import build_request

ALL_KEYS = [data_type.value for data_type in WithingsDataType]
MEASURE_KEYS = ["blood_pressure", "body_height", "body_weight", "heart_rate"]


def query_params(query):
    return dict(parse_qsl(urlsplit(query.url).query))


def test_step_count_daily_uses_calendar_dates(daily_account):
    query = build_request(make_request("step_count"), daily_account)

    assert query.path == "v2/measure"
    assert query_params(query) == {
        "action": "getactivity",
        "userid": "12345",
        "startdateymd": "2024-01-01",
        "enddateymd": "2024-01-03",
    }


def test_step_count_intraday_uses_epoch_seconds_and_widens_end(intraday_account):
    query = build_request(make_request("step_count"), intraday_account)
    params = query_params(query)

    assert query.path == "v2/measure"
    assert params["action"] == INTRADAY_ACTIVITY_ACTION
    assert params["startdate"] == "1704067200"
    # 2024-01-04T00:00:00Z
    assert params["enddate"] == "1704326400"
    assert "startdateymd" not in params
    assert "meastype" not in params
    assert "category" not in params


def test_blood_pressure_is_not_narrowed(daily_account):
    query = build_request(make_request("blood_pressure"), daily_account)

    assert "meastype" not in query
    assert query.get("category") == "1"
    assert query.get("action") == MEASURE_ACTION


def test_body_weight_is_narrowed_to_weight(daily_account):
    query = build_request(make_request("body_weight"), daily_account)

    assert query.get("meastype") == "1"
    assert query.get("category") == "1"


@pytest.mark.parametrize("key,code", [("body_height", "4"), ("heart_rate", "11")])
def test_other_measures_are_narrowed(key, code, daily_account):
    assert build_request(make_request(key), daily_account).get("meastype") == code


@pytest.mark.parametrize("key", ALL_KEYS)
@pytest.mark.parametrize("intraday", [False, True])
def test_category_only_for_measure_action(key, intraday):
    account = AccountCapabilities(external_user_id="12345", intraday_available=intraday)
    query = build_request(make_request(key), account)

    assert ("category" in query) == (key in MEASURE_KEYS)
    assert ("meastype" in query) == (key in MEASURE_KEYS and key != "blood_pressure")


@pytest.mark.parametrize("key", ALL_KEYS)
@pytest.mark.parametrize("intraday", [False, True])
def test_exactly_one_date_encoding(key, intraday):
    account = AccountCapabilities(external_user_id="12345", intraday_available=intraday)
    query = build_request(make_request(key), account)

    epoch = "startdate" in query and "enddate" in query
    calendar = "startdateymd" in query and "enddateymd" in query
    assert epoch != calendar
    assert ("startdate" in query) == ("enddate" in query)
    assert ("startdateymd" in query) == ("enddateymd" in query)


@pytest.mark.parametrize("key", ["calories_burned", "step_count"])
def test_intraday_types_follow_account_flag(key, daily_account, intraday_account):
    daily = build_request(make_request(key), daily_account)
    intraday = build_request(make_request(key), intraday_account)

    assert daily.get("action") == descriptor_for(key).action
    assert "startdateymd" in daily
    assert intraday.get("action") == INTRADAY_ACTIVITY_ACTION
    assert "startdate" in intraday


def test_intraday_flag_does_not_affect_sleep(daily_account, intraday_account):
    assert build_request(make_request("sleep_duration"), intraday_account) == \
        build_request(make_request("sleep_duration"), daily_account)


def test_parameter_order_and_url(daily_account):
    query = build_request(make_request("body_weight"), daily_account)

    assert [key for key, _ in query.params] == ["action", "userid", "startdate", "enddate", "meastype", "category"]
    assert query.url == (
        "http://wbsapi.withings.net/measure?action=getmeas&userid=12345"
        "&startdate=1704067200&enddate=1704326400&meastype=1&category=1"
    )


def test_base_url_is_configurable(daily_account):
    query = build_request(make_request("sleep_duration"), daily_account, base_url="https://example.test/")
    assert query.url.startswith("https://example.test/v2/sleep?action=getsummary")


def test_build_is_idempotent(intraday_account):
    request = make_request("calories_burned")
    assert build_request(request, intraday_account).url == build_request(request, intraday_account).url


def test_calendar_dates_use_the_request_offset(daily_account):
    pacific = timezone(timedelta(hours=-8))
    request = make_request(
        "sleep_duration",
        start=datetime(2024, 1, 1, 22, 0, tzinfo=pacific),
        end=datetime(2024, 1, 2, 23, 30, tzinfo=pacific),
    )
    query = build_request(request, daily_account)

    assert query.get("startdateymd") == "2024-01-01"
    assert query.get("enddateymd") == "2024-01-02"


def test_unknown_data_type_is_rejected(daily_account):
    with pytest.raises(UnknownDataType):
        build_request(make_request("oxygen_saturation"), daily_account)
