"""Shared request/parse helpers for the remote APIs.

Every remote failure leaves this module as NetworkError: HTTP status errors,
transport errors and timeouts, bodies that are not JSON, and JSON that does
not match the expected schema.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from citycast.errors import NetworkError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    params: Any,
    label: str,
) -> Any:
    """GET url and return the decoded JSON body."""
    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
    except httpx.HTTPStatusError as e:
        logger.warning(
            "%s returned %d: %s", label, e.response.status_code, e.response.text[:200]
        )
        raise NetworkError(f"Failed to fetch {label}: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.warning("%s request failed: %s", label, e)
        raise NetworkError(f"Failed to fetch {label}") from e
    except ValueError as e:
        logger.warning("%s returned a non-JSON body: %s", label, e)
        raise NetworkError(f"Failed to fetch {label}: invalid response") from e


def parse_payload(model: type[M], data: Any, label: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("%s payload did not match schema: %s", label, e)
        raise NetworkError(f"Failed to fetch {label}: unexpected response shape") from e
