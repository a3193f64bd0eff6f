"""
Withings Data Types
===================
Static metadata for every data type the shim can retrieve.

Each data type lives under a Withings endpoint, is selected by an ``action``
parameter, and expects either Unix epoch seconds (``startdate``/``enddate``)
or calendar dates (``startdateymd``/``enddateymd``) for its time window.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

from withings_shim.errors import UnknownDataType

MEASURE_ACTION = "getmeas"
ACTIVITY_ACTION = "getactivity"
SLEEP_SUMMARY_ACTION = "getsummary"
INTRADAY_ACTIVITY_ACTION = "getintradayactivity"


class WithingsDataType(Enum):
    """Data types supported by the shim, in the order they are advertised."""
    BLOOD_PRESSURE = "blood_pressure"
    BODY_HEIGHT = "body_height"
    BODY_WEIGHT = "body_weight"
    CALORIES_BURNED = "calories_burned"
    HEART_RATE = "heart_rate"
    SLEEP_DURATION = "sleep_duration"
    STEP_COUNT = "step_count"

    @classmethod
    def from_key(cls, data_type_key: Optional[str]) -> "WithingsDataType":
        """Resolve a request key such as ``" Step_Count "`` to its member."""
        if data_type_key is None:
            raise UnknownDataType(data_type_key)
        try:
            return cls[data_type_key.strip().upper()]
        except KeyError:
            raise UnknownDataType(data_type_key) from None


class WithingsBodyMeasureType(Enum):
    """Withings ``meastype`` codes for body measures."""
    BODY_WEIGHT = 1
    BODY_HEIGHT = 4
    BLOOD_PRESSURE_DIASTOLIC = 9
    BLOOD_PRESSURE_SYSTOLIC = 10
    HEART_RATE = 11

    @property
    def magic_number(self) -> int:
        return self.value


@dataclass(frozen=True)
class DataTypeDescriptor:
    endpoint: str
    action: str
    uses_epoch_seconds: bool


_DESCRIPTORS: Mapping[WithingsDataType, DataTypeDescriptor] = MappingProxyType({
    WithingsDataType.BLOOD_PRESSURE: DataTypeDescriptor("measure", MEASURE_ACTION, True),
    WithingsDataType.BODY_HEIGHT: DataTypeDescriptor("measure", MEASURE_ACTION, True),
    WithingsDataType.BODY_WEIGHT: DataTypeDescriptor("measure", MEASURE_ACTION, True),
    WithingsDataType.CALORIES_BURNED: DataTypeDescriptor("v2/measure", ACTIVITY_ACTION, False),
    WithingsDataType.HEART_RATE: DataTypeDescriptor("measure", MEASURE_ACTION, True),
    WithingsDataType.SLEEP_DURATION: DataTypeDescriptor("v2/sleep", SLEEP_SUMMARY_ACTION, False),
    WithingsDataType.STEP_COUNT: DataTypeDescriptor("v2/measure", ACTIVITY_ACTION, False),
})


def descriptor_for(data_type: Union[WithingsDataType, str, None]) -> DataTypeDescriptor:
    """
    Look up the descriptor for a data type.

    Accepts a WithingsDataType or its request key. Raises UnknownDataType for
    anything outside the supported set.
    """
    if not isinstance(data_type, WithingsDataType):
        data_type = WithingsDataType.from_key(data_type)
    try:
        return _DESCRIPTORS[data_type]
    except KeyError:
        raise UnknownDataType(str(data_type)) from None


def body_measure_type_for(data_type: WithingsDataType) -> WithingsBodyMeasureType:
    """The single ``meastype`` that narrows a body measure fetch to ``data_type``."""
    return WithingsBodyMeasureType[data_type.name]
