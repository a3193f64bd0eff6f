import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import AwareDatetime, BaseModel, Field, TypeAdapter, ValidationError, model_validator

from withings_shim.capabilities import AccountCapabilities
from withings_shim.errors import ShimException

USER_ID_PARAMETER = "userid"
INTRADAY_PARAMETER = "intraday_available"

_BOOL = TypeAdapter(bool)


class AccessParameters(BaseModel):
    """
    OAuth 1.0a credentials for one Withings account, plus the extra values
    Withings hands out during authorization (notably ``userid``).
    """
    access_token: str
    token_secret: str
    additional_parameters: Dict[str, Any] = Field(default_factory=dict)

    def account_capabilities(self, default_intraday_available: bool = False) -> AccountCapabilities:
        user_id = self.additional_parameters.get(USER_ID_PARAMETER)
        if user_id is None or str(user_id) == "":
            raise ShimException("Withings userid missing from access parameters, cannot retrieve data.")
        raw_intraday = self.additional_parameters.get(INTRADAY_PARAMETER, default_intraday_available)
        try:
            # stored parameters may hold "false" or "0" rather than a bool
            intraday = _BOOL.validate_python(raw_intraday)
        except ValidationError:
            raise ShimException(
                f"Invalid {INTRADAY_PARAMETER} access parameter: {raw_intraday!r}, cannot retrieve data."
            ) from None
        return AccountCapabilities(external_user_id=str(user_id), intraday_available=intraday)


class ShimDataRequest(BaseModel):
    data_type_key: Optional[str] = Field(
        ...,
        description="Requested data type, e.g. 'step_count'. Matched case-insensitively.",
    )
    start_date_time: AwareDatetime
    end_date_time: AwareDatetime
    normalize: bool = Field(
        default=True,
        description="Return normalized data points instead of the raw Withings JSON.",
    )
    access_parameters: AccessParameters

    @model_validator(mode="after")
    def check_time_range(self) -> "ShimDataRequest":
        if self.start_date_time > self.end_date_time:
            raise ValueError("start_date_time must not be after end_date_time")
        return self


class ShimDataResponse(BaseModel):
    shim: str
    timestamp: datetime
    body: Any

    @classmethod
    def result(cls, shim_key: str, body: Any) -> "ShimDataResponse":
        return cls(shim=shim_key, timestamp=datetime.now(timezone.utc), body=body)


# -------------------------------------------------------------------------
# Normalized data points
# -------------------------------------------------------------------------
class SchemaId(BaseModel):
    namespace: str = "omh"
    name: str
    version: str = "1.0"


class AcquisitionProvenance(BaseModel):
    source_name: str = "Withings"
    modality: Optional[str] = Field(
        default=None,
        description="'sensed' for device readings, 'self-reported' for manual entries.",
    )
    external_id: Optional[str] = None


class DataPointHeader(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    creation_date_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    schema_id: SchemaId
    acquisition_provenance: AcquisitionProvenance


class DataPoint(BaseModel):
    """
    A single normalized measurement. ``body`` follows the schema named in
    ``header.schema_id`` and always carries an ``effective_time_frame``.
    """
    header: DataPointHeader
    body: Dict[str, Any]
