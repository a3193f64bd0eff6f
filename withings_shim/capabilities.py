from dataclasses import dataclass
from typing import FrozenSet

from withings_shim.data_types import WithingsDataType

# Only these types have a Withings intraday variant. Revisit when Withings
# adds intraday support for other measures.
INTRADAY_DATA_TYPES: FrozenSet[WithingsDataType] = frozenset({
    WithingsDataType.STEP_COUNT,
    WithingsDataType.CALORIES_BURNED,
})


@dataclass(frozen=True)
class AccountCapabilities:
    """Per-account settings that shape a Withings request."""
    external_user_id: str
    intraday_available: bool = False


def is_intraday_active_for(data_type: WithingsDataType, capabilities: AccountCapabilities) -> bool:
    """
    Whether a request for ``data_type`` should use the intraday activity
    endpoint. This changes both the action and the date encoding, and selects
    the intraday mapper for the response.
    """
    return capabilities.intraday_available and data_type in INTRADAY_DATA_TYPES
