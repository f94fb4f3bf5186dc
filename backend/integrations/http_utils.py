"""HTTP helpers shared by the provider clients.

Translates transport and status failures into the typed provider
exceptions. Each call is a single attempt; callers decide whether to fall
back to another source.
"""

import logging

import httpx

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)

logger = logging.getLogger(__name__)


def request_json(
    client: httpx.Client,
    method: str,
    path: str,
    provider_name: str,
    require_json_content_type: bool = True,
    **kwargs,
):
    """Send a request and return the decoded JSON body.

    Raises:
        ProviderConnectionError: Timeout or network failure.
        ProviderAuthError: HTTP 401/403.
        ProviderAPIError: Any other HTTP 4xx/5xx.
        ProviderDataError: Non-JSON content type or undecodable body.
    """
    try:
        response = client.request(method, path, **kwargs)
    except httpx.TimeoutException as e:
        raise ProviderConnectionError(
            f"{provider_name}: request to {path} timed out", provider_name, timed_out=True
        ) from e
    except httpx.HTTPError as e:
        raise ProviderConnectionError(
            f"{provider_name}: request to {path} failed: {e}", provider_name
        ) from e

    if response.status_code in (401, 403):
        raise ProviderAuthError(
            f"{provider_name}: credentials rejected (HTTP {response.status_code})",
            provider_name,
        )
    if response.status_code >= 400:
        raise ProviderAPIError(
            f"{provider_name}: HTTP {response.status_code} from {path}",
            provider_name,
            status_code=response.status_code,
        )

    content_type = response.headers.get("content-type", "")
    if require_json_content_type and "application/json" not in content_type:
        raise ProviderDataError(
            f"{provider_name}: expected JSON from {path}, got {content_type or 'no content type'}",
            provider_name,
        )

    try:
        return response.json()
    except ValueError as e:
        raise ProviderDataError(
            f"{provider_name}: undecodable JSON from {path}", provider_name
        ) from e
