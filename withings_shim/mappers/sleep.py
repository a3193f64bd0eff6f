from typing import Any, Dict, Optional

from withings_shim.errors import MalformedVendorResponse
from withings_shim.mappers.base import SENSED, WithingsDataPointMapper, epoch_to_iso, require, unit_value
from withings_shim.models import DataPoint

ASLEEP_FIELDS = ("lightsleepduration", "deepsleepduration", "remsleepduration")


class WithingsSleepDurationDataPointMapper(WithingsDataPointMapper):
    """
    Maps ``v2/sleep?action=getsummary`` nights. Time asleep is the sum of the
    light, deep and REM phases; wake periods inside the night are excluded.
    """
    SCHEMA_NAME = "sleep-duration"
    LIST_PROPERTY = "series"

    def as_data_point(self, night: Dict[str, Any]) -> Optional[DataPoint]:
        data = require(night, "data")
        if not isinstance(data, dict):
            raise MalformedVendorResponse("Withings sleep summary 'data' is not an object")
        phases = [data[field] for field in ASLEEP_FIELDS if data.get(field) is not None]
        if not phases:
            return None

        body = {
            "sleep_duration": unit_value(sum(phases), "sec"),
            "effective_time_frame": {
                "time_interval": {
                    "start_date_time": epoch_to_iso(require(night, "startdate")),
                    "end_date_time": epoch_to_iso(require(night, "enddate")),
                }
            },
        }
        return self.new_data_point(body, modality=SENSED, external_id=night.get("id"))
