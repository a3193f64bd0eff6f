#!/usr/bin/env python3
"""
Fetch Withings Data
===================
Command-line access to the Withings shim, for checking credentials and
inspecting what Withings returns for a data type.

Usage:
    # Normalized step counts for the last day:
    python scripts/fetch_data.py --data-type step_count

    # Raw Withings JSON for a date range:
    python scripts/fetch_data.py --data-type body_weight --start 2024-01-01 --end 2024-01-31 --raw

    # Force the intraday activity endpoint:
    python scripts/fetch_data.py --data-type calories_burned --intraday

Requirements:
    - WITHINGS_CLIENT_ID / WITHINGS_CLIENT_SECRET env vars
    - WITHINGS_ACCESS_TOKEN / WITHINGS_TOKEN_SECRET env vars
    - WITHINGS_USER_ID env var
"""

import argparse
import json
import sys
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from withings_shim.config import get_settings
from withings_shim.errors import ShimException
from withings_shim.logging_config import setup_logging
from withings_shim.models import INTRADAY_PARAMETER, USER_ID_PARAMETER, AccessParameters, ShimDataRequest
from withings_shim.shim import WithingsShim


def parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch data from Withings through the shim")
    parser.add_argument("--data-type", required=True, help="e.g. step_count, body_weight, sleep_duration")
    parser.add_argument("--start", type=parse_datetime, help="ISO-8601 start (default: one day before --end)")
    parser.add_argument("--end", type=parse_datetime, help="ISO-8601 end (default: now)")
    parser.add_argument("--raw", action="store_true", help="Print raw Withings JSON instead of data points")
    parser.add_argument("--intraday", action="store_true", help="Treat the account as intraday-enabled")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(json_format=False)

    end = args.end or datetime.now(timezone.utc)
    start = args.start or end - timedelta(days=1)

    additional = {USER_ID_PARAMETER: settings.WITHINGS_USER_ID}
    if args.intraday:
        additional[INTRADAY_PARAMETER] = True

    try:
        request = ShimDataRequest(
            data_type_key=args.data_type,
            start_date_time=start,
            end_date_time=end,
            normalize=not args.raw,
            access_parameters=AccessParameters(
                access_token=settings.WITHINGS_ACCESS_TOKEN,
                token_secret=settings.WITHINGS_TOKEN_SECRET,
                additional_parameters=additional,
            ),
        )
        response = WithingsShim(settings).get_data(request)
    except (ShimException, ValidationError) as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    print(json.dumps(response.model_dump(mode="json"), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
