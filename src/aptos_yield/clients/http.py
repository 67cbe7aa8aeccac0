"""JSON-over-HTTP helper shared by protocol adapters and the price lookup."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import backoff
import requests

from ..logger import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _giveup(e: Exception) -> bool:
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRYABLE_STATUS_CODES
    )


async def fetch_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout: float = 10.0,
    max_tries: int = 4,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Connection errors and 429/5xx responses are retried with exponential
    backoff; other HTTP errors fail immediately.

    Raises:
        requests.exceptions.RequestException: If the request fails
        ValueError: If the body is not valid JSON
    """

    @backoff.on_exception(
        backoff.expo,
        requests.exceptions.RequestException,
        max_tries=max_tries,
        giveup=_giveup,
        jitter=backoff.full_jitter,
    )
    async def _get() -> requests.Response:
        logger.debug("Calling %s", url)
        response = await asyncio.to_thread(
            requests.get, url, params=params, timeout=timeout
        )
        response.raise_for_status()
        return response

    response = await _get()
    try:
        return response.json()
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from {url}") from e
