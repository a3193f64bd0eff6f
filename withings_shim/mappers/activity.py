"""
Mappers for activity responses, daily and intraday.

Daily (``v2/measure?action=getactivity``) returns one row per local day:
    {"date": "2024-01-01", "timezone": "Europe/Paris", "steps": 8421, "calories": 312.5}

Intraday (``v2/measure?action=getintradayactivity``) returns a series keyed
by epoch seconds:
    {"1704067200": {"steps": 14, "calories": 0.9, "duration": 60}}
"""

from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from withings_shim.errors import MalformedVendorResponse
from withings_shim.mappers.base import (
    SENSED,
    WithingsDataPointMapper,
    epoch_to_iso,
    require,
    response_body,
    unit_value,
)
from withings_shim.models import DataPoint


def local_midnight(day: Any, tz_name: Any) -> str:
    try:
        tz = ZoneInfo(tz_name)
        start = datetime.combine(date.fromisoformat(day), time.min, tzinfo=tz)
    except (ZoneInfoNotFoundError, TypeError, ValueError) as exc:
        raise MalformedVendorResponse(f"Invalid Withings activity date {day!r} / timezone {tz_name!r}") from exc
    return start.isoformat()


class WithingsDailyActivityDataPointMapper(WithingsDataPointMapper):
    LIST_PROPERTY = "activities"
    ACTIVITY_FIELD: str = ""

    def as_data_point(self, activity: Dict[str, Any]) -> Optional[DataPoint]:
        if not isinstance(activity, dict):
            raise MalformedVendorResponse(f"Withings activity entry is not an object: {activity!r}")
        value = activity.get(self.ACTIVITY_FIELD)
        if not value:
            return None

        start = local_midnight(require(activity, "date"), require(activity, "timezone"))
        body = self.activity_body(value)
        body["effective_time_frame"] = {
            "time_interval": {
                "start_date_time": start,
                "duration": unit_value(1, "d"),
            }
        }
        return self.new_data_point(body, modality=SENSED)

    def activity_body(self, value: Any) -> Dict[str, Any]:
        raise NotImplementedError


class WithingsDailyStepCountDataPointMapper(WithingsDailyActivityDataPointMapper):
    SCHEMA_NAME = "step-count"
    ACTIVITY_FIELD = "steps"

    def activity_body(self, value: Any) -> Dict[str, Any]:
        return {"step_count": value}


class WithingsDailyCaloriesBurnedDataPointMapper(WithingsDailyActivityDataPointMapper):
    SCHEMA_NAME = "calories-burned"
    ACTIVITY_FIELD = "calories"

    def activity_body(self, value: Any) -> Dict[str, Any]:
        return {"kcal_burned": unit_value(value, "kcal")}


class WithingsIntradayActivityDataPointMapper(WithingsDataPointMapper):
    LIST_PROPERTY = "series"
    ACTIVITY_FIELD: str = ""

    def list_node(self, node: Any) -> Iterable[Tuple[int, Dict[str, Any]]]:
        body = response_body(node)
        series = body.get(self.LIST_PROPERTY)
        # Withings sends [] instead of {} when there is no data
        if series == []:
            return []
        if not isinstance(series, dict):
            raise MalformedVendorResponse("Withings intraday response has no 'series' object")

        entries: List[Tuple[int, Dict[str, Any]]] = []
        for key, entry in series.items():
            try:
                entries.append((int(key), entry))
            except ValueError:
                raise MalformedVendorResponse(f"Invalid Withings intraday timestamp: {key!r}") from None
        return sorted(entries, key=lambda item: item[0])

    def as_data_point(self, item: Tuple[int, Dict[str, Any]]) -> Optional[DataPoint]:
        timestamp, entry = item
        value = entry.get(self.ACTIVITY_FIELD) if isinstance(entry, dict) else None
        if not value:
            return None

        body = self.activity_body(value)
        body["effective_time_frame"] = {
            "time_interval": {
                "start_date_time": epoch_to_iso(timestamp),
                "duration": unit_value(require(entry, "duration"), "sec"),
            }
        }
        return self.new_data_point(body, modality=SENSED)

    def activity_body(self, value: Any) -> Dict[str, Any]:
        raise NotImplementedError


class WithingsIntradayStepCountDataPointMapper(WithingsIntradayActivityDataPointMapper):
    SCHEMA_NAME = "step-count"
    ACTIVITY_FIELD = "steps"

    def activity_body(self, value: Any) -> Dict[str, Any]:
        return {"step_count": value}


class WithingsIntradayCaloriesBurnedDataPointMapper(WithingsIntradayActivityDataPointMapper):
    SCHEMA_NAME = "calories-burned"
    ACTIVITY_FIELD = "calories"

    def activity_body(self, value: Any) -> Dict[str, Any]:
        return {"kcal_burned": unit_value(value, "kcal")}
