"""Tests for the enrichment HTTP client."""
import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from shoe_store.enrichment import EnrichmentClient
from shoe_store.errors import EnrichmentError
from shoe_store.models import Shoe


SHOES = [Shoe(name="Air Max", price=120.0)]


def make_client(payload=None, status=200, exc=None):
    session = MagicMock()
    if exc is not None:
        session.post.side_effect = exc
    else:
        response = MagicMock()
        response.status_code = status
        if isinstance(payload, Exception):
            response.json.side_effect = payload
        else:
            response.json.return_value = payload
        session.post.return_value = response
    return EnrichmentClient("http://details.local/", timeout=5, session=session), session


class TestEnrichmentClient:
    def test_posts_shoes_and_user_id(self):
        """Test that the client posts the shoes and user id to /shoes."""
        client, session = make_client({"details": "A running shoe."})

        details = asyncio.run(client.fetch_details(SHOES, "user-1"))

        assert details == "A running shoe."
        session.post.assert_called_once_with(
            "http://details.local/shoes",
            json={"shoes": [{"name": "Air Max", "price": 120.0}], "userId": "user-1"},
            timeout=5,
        )

    def test_service_error_message_is_kept(self):
        """Test that an {"error": ...} response raises EnrichmentError with that message."""
        client, _ = make_client({"error": "rate limited"}, status=429)

        with pytest.raises(EnrichmentError) as exc:
            client.fetch_details_sync(SHOES, "user-1")

        assert exc.value.message == "rate limited"

    def test_null_details_are_empty(self):
        """Test that null details come back as an empty string."""
        client, _ = make_client({"details": None})

        assert client.fetch_details_sync(SHOES, None) == ""

    @pytest.mark.parametrize("payload", [
        {"detail": [{"msg": "field required"}]},
        ["not", "an", "object"],
        {"details": 42},
        ValueError("Expecting value"),
    ])
    def test_malformed_response_is_generic_error(self, payload):
        """Test that responses without details or error raise the generic error."""
        client, _ = make_client(payload)

        with pytest.raises(EnrichmentError) as exc:
            client.fetch_details_sync(SHOES, "user-1")

        assert exc.value.message == "Failed to fetch shoe details."

    def test_transport_failure_is_generic_error(self):
        """Test that connection failures raise the generic error."""
        client, _ = make_client(exc=requests.ConnectionError("refused"))

        with pytest.raises(EnrichmentError) as exc:
            asyncio.run(client.fetch_details(SHOES, "user-1"))

        assert exc.value.message == "Failed to fetch shoe details."
