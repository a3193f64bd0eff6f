"""
Mappers for ``measure?action=getmeas`` responses.

A measure group holds every metric taken at one moment:
    {"grpid": 12, "attrib": 0, "date": 1439596281, "category": 1,
     "measures": [{"value": 7235, "type": 1, "unit": -2}]}
Actual values are ``value * 10**unit``.
"""

from typing import Any, Dict, Optional

from withings_shim.data_types import WithingsBodyMeasureType
from withings_shim.errors import MalformedVendorResponse
from withings_shim.mappers.base import (
    SELF_REPORTED,
    SENSED,
    WithingsDataPointMapper,
    epoch_to_iso,
    require,
    unit_value,
)
from withings_shim.models import DataPoint

# attrib: 0 device, 1 device but ambiguous user, 2 manual, 4 manual at account creation
ATTRIB_MODALITY = {
    0: SENSED,
    1: SENSED,
    2: SELF_REPORTED,
    4: SELF_REPORTED,
}


def scaled_value(value: Any, unit: Any) -> float:
    if unit < 0:
        return value / (10 ** abs(unit))
    return float(value * (10 ** unit))


class WithingsBodyMeasureDataPointMapper(WithingsDataPointMapper):
    LIST_PROPERTY = "measuregrps"

    def as_data_point(self, group: Dict[str, Any]) -> Optional[DataPoint]:
        body = self.measure_body(group)
        if body is None:
            return None

        body["effective_time_frame"] = {"date_time": epoch_to_iso(require(group, "date"))}
        return self.new_data_point(
            body,
            modality=ATTRIB_MODALITY.get(group.get("attrib")),
            external_id=group.get("grpid"),
        )

    def measure_body(self, group: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @staticmethod
    def measure_value(group: Dict[str, Any], measure_type: WithingsBodyMeasureType) -> Optional[float]:
        measures = require(group, "measures")
        if not isinstance(measures, list):
            raise MalformedVendorResponse("Withings 'measures' is not a list")
        for measure in measures:
            if require(measure, "type") == measure_type.magic_number:
                try:
                    return scaled_value(require(measure, "value"), require(measure, "unit"))
                except TypeError as exc:
                    raise MalformedVendorResponse(f"Invalid Withings measure: {measure!r}") from exc
        return None


class WithingsSingleMeasureDataPointMapper(WithingsBodyMeasureDataPointMapper):
    MEASURE_TYPE: WithingsBodyMeasureType
    BODY_PROPERTY: str = ""
    UNIT: str = ""

    def measure_body(self, group: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        value = self.measure_value(group, self.MEASURE_TYPE)
        if value is None:
            return None
        return {self.BODY_PROPERTY: unit_value(value, self.UNIT)}


class WithingsBloodPressureDataPointMapper(WithingsBodyMeasureDataPointMapper):
    """Pairs the systolic and diastolic measures of a group into one reading."""
    SCHEMA_NAME = "blood-pressure"

    def measure_body(self, group: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        systolic = self.measure_value(group, WithingsBodyMeasureType.BLOOD_PRESSURE_SYSTOLIC)
        diastolic = self.measure_value(group, WithingsBodyMeasureType.BLOOD_PRESSURE_DIASTOLIC)
        if systolic is None or diastolic is None:
            return None
        return {
            "systolic_blood_pressure": unit_value(systolic, "mmHg"),
            "diastolic_blood_pressure": unit_value(diastolic, "mmHg"),
        }


class WithingsBodyWeightDataPointMapper(WithingsSingleMeasureDataPointMapper):
    SCHEMA_NAME = "body-weight"
    MEASURE_TYPE = WithingsBodyMeasureType.BODY_WEIGHT
    BODY_PROPERTY = "body_weight"
    UNIT = "kg"


class WithingsBodyHeightDataPointMapper(WithingsSingleMeasureDataPointMapper):
    SCHEMA_NAME = "body-height"
    MEASURE_TYPE = WithingsBodyMeasureType.BODY_HEIGHT
    BODY_PROPERTY = "body_height"
    UNIT = "m"


class WithingsHeartRateDataPointMapper(WithingsSingleMeasureDataPointMapper):
    SCHEMA_NAME = "heart-rate"
    MEASURE_TYPE = WithingsBodyMeasureType.HEART_RATE
    BODY_PROPERTY = "heart_rate"
    UNIT = "beats/min"
