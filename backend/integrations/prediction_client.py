"""Client for the remote price-prediction service."""

import logging

import httpx

from integrations.http_utils import request_json

logger = logging.getLogger(__name__)


class PredictionClient:
    """Forwards feature payloads to the prediction endpoint unchanged."""

    def __init__(self, url: str, timeout: float = 30.0):
        self._url = url
        self._client = httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "prediction"

    def predict(self, payload: dict):
        """POST ``payload`` and return the decoded prediction."""
        logger.info("Forwarding prediction request (%d top-level fields)", len(payload))
        return request_json(
            self._client,
            "POST",
            self._url,
            self.provider_name,
            require_json_content_type=False,
            json=payload,
        )
