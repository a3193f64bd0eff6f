"""
Withings Request Builder
========================
Turns a shim data request into the concrete Withings query: endpoint path,
``action``, ``userid``, the time window in the encoding the endpoint expects,
and body measure filters.

Pure: no I/O and no shared state, so the same inputs always produce the
same URL.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Tuple
from urllib.parse import urlencode

from withings_shim.capabilities import AccountCapabilities, is_intraday_active_for
from withings_shim.config import DEFAULT_DATA_URL
from withings_shim.data_types import (
    INTRADAY_ACTIVITY_ACTION,
    MEASURE_ACTION,
    WithingsDataType,
    body_measure_type_for,
    descriptor_for,
)
from withings_shim.models import ShimDataRequest

# Category 1 is real measurements; category 2 would add user objectives.
REAL_MEASUREMENT_CATEGORY = "1"


@dataclass(frozen=True)
class VendorQuery:
    base_url: str
    path: str
    params: Tuple[Tuple[str, str], ...]

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.path}?{urlencode(self.params)}"

    def get(self, name: str) -> Optional[str]:
        """First value of query parameter ``name``, or None."""
        for key, value in self.params:
            if key == name:
                return value
        return None

    def __contains__(self, name: str) -> bool:
        return any(key == name for key, _ in self.params)


def _date_params(request: ShimDataRequest, use_epoch_seconds: bool) -> List[Tuple[str, str]]:
    start = request.start_date_time
    end = request.end_date_time
    if use_epoch_seconds:
        # enddate is exclusive at day granularity, so widen by a day to keep the last day
        return [
            ("startdate", str(int(start.timestamp()))),
            ("enddate", str(int((end + timedelta(days=1)).timestamp()))),
        ]
    return [
        ("startdateymd", start.date().isoformat()),
        ("enddateymd", end.date().isoformat()),
    ]


def build_request(
    request: ShimDataRequest,
    capabilities: AccountCapabilities,
    base_url: str = DEFAULT_DATA_URL,
) -> VendorQuery:
    """
    Build the Withings query for ``request``.

    Raises UnknownDataType before assembling anything if the request's data
    type is not supported.
    """
    data_type = WithingsDataType.from_key(request.data_type_key)
    descriptor = descriptor_for(data_type)
    intraday = is_intraday_active_for(data_type, capabilities)

    # intraday activity is served by a different action under the same endpoint
    action = INTRADAY_ACTIVITY_ACTION if intraday else descriptor.action

    params: List[Tuple[str, str]] = [
        ("action", action),
        ("userid", capabilities.external_user_id),
    ]
    params.extend(_date_params(request, descriptor.uses_epoch_seconds or intraday))

    if descriptor.action == MEASURE_ACTION:
        # Blood pressure comes back as separate systolic and diastolic measures,
        # so it is fetched unfiltered and the mapper picks out both.
        if data_type is not WithingsDataType.BLOOD_PRESSURE:
            params.append(("meastype", str(body_measure_type_for(data_type).magic_number)))
        params.append(("category", REAL_MEASUREMENT_CATEGORY))

    return VendorQuery(base_url=base_url, path=descriptor.endpoint, params=tuple(params))
