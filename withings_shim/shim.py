"""
Withings Shim
=============
Fetches health data for one Withings account and returns it either as the
raw Withings JSON or as normalized data points.

Flow per request:
    resolve data type -> build query -> sign (OAuth 1.0a) -> GET -> dispatch

Unknown data types are rejected before anything touches the network.
"""

import logging
from typing import Any, List, Mapping, Optional

import httpx

from withings_shim.config import Settings, get_settings
from withings_shim.data_types import WithingsDataType
from withings_shim.dispatcher import dispatch
from withings_shim.errors import MalformedVendorResponse, TransportFailure, UnknownDataType
from withings_shim.logging_config import log_with_context
from withings_shim.models import USER_ID_PARAMETER, AccessParameters, ShimDataRequest, ShimDataResponse
from withings_shim.request_builder import build_request
from withings_shim.signing import OAuth1UrlSigner
from withings_shim.transport import HttpTransport

logger = logging.getLogger(__name__)

SHIM_KEY = "withings"
SHIM_LABEL = "Withings"
REQUEST_TOKEN_URL = "https://oauth.withings.com/account/request_token"
USER_AUTHORIZATION_URL = "https://oauth.withings.com/account/authorize"
ACCESS_TOKEN_URL = "https://oauth.withings.com/account/access_token"


class WithingsShim:
    shim_key = SHIM_KEY
    label = SHIM_LABEL
    request_token_url = REQUEST_TOKEN_URL
    user_authorization_url = USER_AUTHORIZATION_URL
    access_token_url = ACCESS_TOKEN_URL

    def __init__(
        self,
        settings: Optional[Settings] = None,
        signer: Optional[Any] = None,
        transport: Optional[Any] = None,
    ) -> None:
        """
        Args:
            settings: Shim configuration. Defaults to get_settings().
            signer: Object with ``sign(url, token, secret) -> str``. Defaults to OAuth1UrlSigner.
            transport: Object whose ``get(url)`` is a context manager yielding
                ``(status_code, body)``. Defaults to HttpTransport.
        """
        self.settings = settings or get_settings()
        self.signer = signer or OAuth1UrlSigner(
            self.settings.WITHINGS_CLIENT_ID,
            self.settings.WITHINGS_CLIENT_SECRET,
        )
        self.transport = transport or HttpTransport(timeout=self.settings.HTTP_TIMEOUT_SECONDS)

    @property
    def shim_data_types(self) -> List[WithingsDataType]:
        return list(WithingsDataType)

    @staticmethod
    def load_additional_access_parameters(
        query_params: Mapping[str, Any],
        access_parameters: AccessParameters,
    ) -> AccessParameters:
        """
        Copy the ``userid`` Withings returns on the authorization callback into
        the access parameters. Every data request has to carry it.
        """
        additional = dict(access_parameters.additional_parameters)
        additional[USER_ID_PARAMETER] = query_params.get(USER_ID_PARAMETER)
        return access_parameters.model_copy(update={"additional_parameters": additional})

    def get_data(self, request: ShimDataRequest) -> ShimDataResponse:
        try:
            data_type = WithingsDataType.from_key(request.data_type_key)
        except UnknownDataType:
            time_range = f"{request.start_date_time.isoformat()} to {request.end_date_time.isoformat()}"
            raise UnknownDataType(request.data_type_key, time_range=time_range) from None

        access = request.access_parameters
        capabilities = access.account_capabilities(self.settings.WITHINGS_INTRADAY_DATA_AVAILABLE)

        query = build_request(request, capabilities, base_url=self.settings.WITHINGS_DATA_URL)
        signed_url = self.signer.sign(query.url, access.access_token, access.token_secret)

        context = {
            "data_type": data_type.name,
            "start": request.start_date_time.isoformat(),
            "end": request.end_date_time.isoformat(),
        }
        log_with_context(
            logger, "info", "Fetching Withings data",
            action=query.get("action"), normalize=request.normalize, **context,
        )

        try:
            with self.transport.get(signed_url) as (status_code, content):
                if not 200 <= status_code < 300:
                    raise TransportFailure(
                        f"Could not fetch data: HTTP {status_code} for {_describe(context)}"
                    )
        except httpx.HTTPError as exc:
            log_with_context(logger, "warning", "Withings request failed", error=str(exc), **context)
            raise TransportFailure(f"Could not fetch data for {_describe(context)}: {exc}") from exc

        try:
            body = dispatch(data_type, capabilities, request.normalize, content)
        except MalformedVendorResponse as exc:
            log_with_context(logger, "warning", "Withings response could not be mapped", **context)
            raise MalformedVendorResponse(f"{exc} ({_describe(context)})") from exc

        if request.normalize:
            log_with_context(logger, "info", "Mapped Withings data points", count=len(body), **context)
        return ShimDataResponse.result(SHIM_KEY, body)


def _describe(context: Mapping[str, str]) -> str:
    return f"{context['data_type']} from {context['start']} to {context['end']}"
