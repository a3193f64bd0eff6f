"""
Withings Response Dispatcher
============================
Chooses the mapper for a data type and hands it the parsed Withings response,
or returns the parsed JSON untouched when normalization was not requested.

Mapper choice keys on the same intraday predicate the request builder uses,
so the mapper always matches the action that was actually called.
"""

import json
import logging
from typing import Any, Dict, List, Tuple, Union

from withings_shim.capabilities import AccountCapabilities, is_intraday_active_for
from withings_shim.data_types import WithingsDataType
from withings_shim.errors import MalformedVendorResponse, UnsupportedDataTypeDefect
from withings_shim.mappers.activity import (
    WithingsDailyCaloriesBurnedDataPointMapper,
    WithingsDailyStepCountDataPointMapper,
    WithingsIntradayCaloriesBurnedDataPointMapper,
    WithingsIntradayStepCountDataPointMapper,
)
from withings_shim.mappers.base import WithingsDataPointMapper
from withings_shim.mappers.body_measures import (
    WithingsBloodPressureDataPointMapper,
    WithingsBodyHeightDataPointMapper,
    WithingsBodyWeightDataPointMapper,
    WithingsHeartRateDataPointMapper,
)
from withings_shim.mappers.sleep import WithingsSleepDurationDataPointMapper
from withings_shim.models import DataPoint

logger = logging.getLogger(__name__)

_blood_pressure = WithingsBloodPressureDataPointMapper()
_body_height = WithingsBodyHeightDataPointMapper()
_body_weight = WithingsBodyWeightDataPointMapper()
_heart_rate = WithingsHeartRateDataPointMapper()
_sleep_duration = WithingsSleepDurationDataPointMapper()

# (data type, intraday active) -> mapper
MAPPERS: Dict[Tuple[WithingsDataType, bool], WithingsDataPointMapper] = {
    (WithingsDataType.BLOOD_PRESSURE, False): _blood_pressure,
    (WithingsDataType.BLOOD_PRESSURE, True): _blood_pressure,
    (WithingsDataType.BODY_HEIGHT, False): _body_height,
    (WithingsDataType.BODY_HEIGHT, True): _body_height,
    (WithingsDataType.BODY_WEIGHT, False): _body_weight,
    (WithingsDataType.BODY_WEIGHT, True): _body_weight,
    (WithingsDataType.CALORIES_BURNED, False): WithingsDailyCaloriesBurnedDataPointMapper(),
    (WithingsDataType.CALORIES_BURNED, True): WithingsIntradayCaloriesBurnedDataPointMapper(),
    (WithingsDataType.HEART_RATE, False): _heart_rate,
    (WithingsDataType.HEART_RATE, True): _heart_rate,
    (WithingsDataType.SLEEP_DURATION, False): _sleep_duration,
    (WithingsDataType.SLEEP_DURATION, True): _sleep_duration,
    (WithingsDataType.STEP_COUNT, False): WithingsDailyStepCountDataPointMapper(),
    (WithingsDataType.STEP_COUNT, True): WithingsIntradayStepCountDataPointMapper(),
}


def check_mapper_table() -> None:
    """Fail if any (data type, intraday flag) combination has no mapper."""
    missing = [
        (data_type.name, intraday)
        for data_type in WithingsDataType
        for intraday in (False, True)
        if (data_type, intraday) not in MAPPERS
    ]
    if missing:
        raise UnsupportedDataTypeDefect(f"No Withings mapper registered for {missing}")


check_mapper_table()


def select_mapper(data_type: WithingsDataType, capabilities: AccountCapabilities) -> WithingsDataPointMapper:
    intraday = is_intraday_active_for(data_type, capabilities)
    try:
        return MAPPERS[(data_type, intraday)]
    except KeyError:
        raise UnsupportedDataTypeDefect(
            f"No Withings mapper for data type {data_type!r} (intraday={intraday})"
        ) from None


def parse_json(body: Union[bytes, str]) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise MalformedVendorResponse(f"Withings response is not valid JSON: {exc}") from exc


def dispatch(
    data_type: WithingsDataType,
    capabilities: AccountCapabilities,
    want_normalized: bool,
    body: Union[bytes, str],
) -> Union[List[DataPoint], Any]:
    """
    Return normalized data points for ``body``, or its parsed JSON when
    ``want_normalized`` is False.
    """
    if not want_normalized:
        return parse_json(body)

    mapper = select_mapper(data_type, capabilities)
    logger.debug(f"Dispatching {data_type.name} response to {type(mapper).__name__}")
    return mapper.as_data_points([parse_json(body)])
