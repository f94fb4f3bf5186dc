"""Unit tests for PredictionClient (mocked httpx)."""

from unittest.mock import patch

import httpx
import pytest

from integrations.exceptions import ProviderAPIError, ProviderConnectionError
from integrations.prediction_client import PredictionClient

URL = "http://predictor.local/predict"


@pytest.fixture
def client():
    return PredictionClient(url=URL)


class TestPredict:
    def test_posts_payload_unchanged(self, client):
        payload = {"features": [1.0, 2.5], "ticker": "ACME"}
        response = httpx.Response(200, json={"prediction": 123.4})
        with patch.object(client._client, "request", return_value=response) as mock_req:
            result = client.predict(payload)

        assert result == {"prediction": 123.4}
        args, kwargs = mock_req.call_args
        assert args == ("POST", URL)
        assert kwargs["json"] == payload

    def test_accepts_json_without_content_type(self, client):
        response = httpx.Response(200, content=b"[0.42]")
        with patch.object(client._client, "request", return_value=response):
            assert client.predict({"x": 1}) == [0.42]

    def test_server_error(self, client):
        response = httpx.Response(502, json={"error": "bad gateway"})
        with patch.object(client._client, "request", return_value=response):
            with pytest.raises(ProviderAPIError):
                client.predict({"x": 1})

    def test_unreachable(self, client):
        with patch.object(client._client, "request", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(ProviderConnectionError):
                client.predict({"x": 1})
