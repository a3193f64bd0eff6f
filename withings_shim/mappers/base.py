"""
Base class for mappers that turn Withings JSON into normalized data points.

Withings wraps every response as ``{"status": 0, "body": {...}}``. A mapper
names the list under ``body`` it reads and converts each entry into at most
one data point.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from withings_shim.errors import MalformedVendorResponse
from withings_shim.models import AcquisitionProvenance, DataPoint, DataPointHeader, SchemaId

logger = logging.getLogger(__name__)

SENSED = "sensed"
SELF_REPORTED = "self-reported"


class WithingsDataPointMapper:
    SCHEMA_NAME: str = ""
    LIST_PROPERTY: str = ""

    def as_data_points(self, nodes: List[Any]) -> List[DataPoint]:
        """Map the single Withings response in ``nodes`` to data points."""
        if len(nodes) != 1:
            raise MalformedVendorResponse(f"Expected exactly one response node, got {len(nodes)}")

        entries = self.list_node(nodes[0])
        data_points = []
        for entry in entries:
            data_point = self.as_data_point(entry)
            if data_point is not None:
                data_points.append(data_point)

        logger.debug(f"{type(self).__name__} mapped {len(data_points)} data points")
        return data_points

    def list_node(self, node: Any) -> Iterable[Any]:
        body = response_body(node)
        if self.LIST_PROPERTY not in body:
            raise MalformedVendorResponse(f"Withings response body has no '{self.LIST_PROPERTY}' list")
        entries = body[self.LIST_PROPERTY]
        if not isinstance(entries, list):
            raise MalformedVendorResponse(f"Withings '{self.LIST_PROPERTY}' is not a list")
        return entries

    def as_data_point(self, entry: Dict[str, Any]) -> Optional[DataPoint]:
        raise NotImplementedError

    def new_data_point(
        self,
        body: Dict[str, Any],
        modality: Optional[str] = None,
        external_id: Optional[Any] = None,
    ) -> DataPoint:
        header = DataPointHeader(
            schema_id=SchemaId(name=self.SCHEMA_NAME),
            acquisition_provenance=AcquisitionProvenance(
                modality=modality,
                external_id=str(external_id) if external_id is not None else None,
            ),
        )
        return DataPoint(header=header, body=body)


def response_body(node: Any) -> Dict[str, Any]:
    """Return ``node["body"]``, failing if Withings reported an error."""
    if not isinstance(node, dict):
        raise MalformedVendorResponse("Withings response is not a JSON object")
    status = node.get("status")
    if status != 0:
        raise MalformedVendorResponse(f"Withings API error {status}: {node.get('error')}")
    body = node.get("body")
    if not isinstance(body, dict):
        raise MalformedVendorResponse("Withings response has no 'body' object")
    return body


def require(entry: Dict[str, Any], field: str) -> Any:
    try:
        return entry[field]
    except (KeyError, TypeError):
        raise MalformedVendorResponse(f"Withings entry is missing required field '{field}'") from None


def unit_value(value: Any, unit: str) -> Dict[str, Any]:
    return {"value": value, "unit": unit}


def epoch_to_iso(epoch_seconds: Any) -> str:
    try:
        return datetime.fromtimestamp(int(epoch_seconds), tz=timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError) as exc:
        raise MalformedVendorResponse(f"Invalid Withings timestamp: {epoch_seconds!r}") from exc
