"""
Tests for the Firefly III ledger client.

The HTTP session is a mock returning real `requests.Response` objects,
so status handling and JSON decoding run exactly as in production.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from expense_bridge.models.ledger import WithdrawalRequest
from expense_bridge.services.ledger import (
    FireflyLedgerClient,
    LedgerConnectionError,
    LedgerResponseError,
)
from expense_bridge.services.ledger.firefly import (
    FIREFLY_CATEGORIES_API,
    FIREFLY_TRANSACTIONS_API,
    build_transaction_payload,
)


BASE_URL = "https://firefly.example.org"
API_KEY = "secret-token"


def make_response(status_code=200, body=None, text=None):
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
    return response


def make_request(**overrides):
    values = {
        "source_account_id": 7,
        "category": "Groceries",
        "amount": Decimal("12.50"),
        "destination_name": "General expense",
        "description": "Groceries by alice",
        "notes": "Milk",
        "tags": ("food", "alice"),
        "date": datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return WithdrawalRequest(**values)


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return FireflyLedgerClient(BASE_URL, API_KEY, timeout=5.0, session=session)


class TestTransactionPayload:
    """Tests for the withdrawal JSON body."""

    def test_payload_fields(self):
        payload = build_transaction_payload(make_request())

        assert payload["error_if_duplicate_hash"] is False
        assert payload["apply_rules"] is True
        assert len(payload["transactions"]) == 1

        split = payload["transactions"][0]
        assert split == {
            "type": "withdrawal",
            "date": "2024-03-01T12:30:00+00:00",
            "amount": "12.50",
            "description": "Groceries by alice",
            "category_name": "Groceries",
            "source_id": "7",
            "destination_name": "General expense",
            "tags": ["food", "alice"],
            "notes": "Milk",
        }

    def test_amount_is_never_scientific(self):
        payload = build_transaction_payload(make_request(amount=Decimal("1E+3")))
        assert payload["transactions"][0]["amount"] == "1000"


class TestCreateWithdrawal:
    """Tests for POST api/v1/transactions."""

    @pytest.mark.asyncio
    async def test_success(self, client, session):
        session.request.return_value = make_response(200, {"data": {"id": "481"}})

        created = await client.create_withdrawal(make_request())

        assert created.transaction_id == "481"
        assert created.category == "Groceries"
        assert created.amount == Decimal("12.50")

        args, kwargs = session.request.call_args
        assert args == ("POST", f"{BASE_URL}/{FIREFLY_TRANSACTIONS_API}")
        assert kwargs["headers"] == {
            "Authorization": f"Bearer {API_KEY}",
            "Accept": "application/json",
        }
        assert kwargs["timeout"] == 5.0
        assert kwargs["json"]["transactions"][0]["category_name"] == "Groceries"

    @pytest.mark.asyncio
    async def test_trailing_slash_in_base_url(self, session):
        client = FireflyLedgerClient(BASE_URL + "/", API_KEY, session=session)
        session.request.return_value = make_response(200, {"data": {"id": 1}})

        created = await client.create_withdrawal(make_request())

        assert created.transaction_id == "1"
        assert session.request.call_args.args[1] == f"{BASE_URL}/{FIREFLY_TRANSACTIONS_API}"

    @pytest.mark.asyncio
    async def test_validation_error_keeps_first_field_message(self, client, session):
        session.request.return_value = make_response(422, {
            "message": "The given data was invalid.",
            "errors": {"transactions.0.amount": ["The amount must be more than zero."]},
        })

        with pytest.raises(LedgerResponseError) as exc_info:
            await client.create_withdrawal(make_request())

        error = exc_info.value
        assert error.status_code == 422
        assert error.detail == "The amount must be more than zero."
        assert error.user_message == "The ledger rejected it: The amount must be more than zero."

    @pytest.mark.asyncio
    async def test_unauthorized(self, client, session):
        session.request.return_value = make_response(401, {"message": "Unauthenticated."})

        with pytest.raises(LedgerResponseError) as exc_info:
            await client.create_withdrawal(make_request())

        assert exc_info.value.status_code == 401
        assert "credentials" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_server_error_with_html_body(self, client, session):
        session.request.return_value = make_response(500, text="<html>Whoops</html>")

        with pytest.raises(LedgerResponseError) as exc_info:
            await client.create_withdrawal(make_request())

        assert exc_info.value.detail is None
        assert exc_info.value.user_message == "The ledger ran into an internal problem."

    @pytest.mark.asyncio
    async def test_timeout(self, client, session):
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(LedgerConnectionError) as exc_info:
            await client.create_withdrawal(make_request())

        assert exc_info.value.timed_out is True
        assert "did not respond in time" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_connection_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(LedgerConnectionError) as exc_info:
            await client.create_withdrawal(make_request())

        assert exc_info.value.timed_out is False
        assert exc_info.value.user_message == "The ledger could not be reached."

    @pytest.mark.asyncio
    async def test_non_json_success(self, client, session):
        session.request.return_value = make_response(200, text="OK")

        with pytest.raises(LedgerResponseError):
            await client.create_withdrawal(make_request())

    @pytest.mark.asyncio
    async def test_missing_transaction_id(self, client, session):
        session.request.return_value = make_response(200, {"data": {}})

        with pytest.raises(LedgerResponseError, match="data.id"):
            await client.create_withdrawal(make_request())

    @pytest.mark.asyncio
    async def test_is_not_retried(self, client, session):
        session.request.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(LedgerConnectionError):
            await client.create_withdrawal(make_request())

        assert session.request.call_count == 1


class TestListCategories:
    """Tests for GET api/v1/categories."""

    @staticmethod
    def page(names, current, total):
        return make_response(200, {
            "data": [{"id": str(i), "attributes": {"name": name}} for i, name in enumerate(names)],
            "meta": {"pagination": {"current_page": current, "total_pages": total}},
        })

    @pytest.mark.asyncio
    async def test_single_page(self, client, session):
        session.request.return_value = self.page(["Groceries", "Rent"], 1, 1)

        assert await client.list_categories() == ["Groceries", "Rent"]

        args, kwargs = session.request.call_args
        assert args == ("GET", f"{BASE_URL}/{FIREFLY_CATEGORIES_API}")
        assert kwargs["params"] == {"page": 1}

    @pytest.mark.asyncio
    async def test_follows_pagination(self, client, session):
        session.request.side_effect = [
            self.page(["Groceries", "Rent"], 1, 2),
            self.page(["Travel"], 2, 2),
        ]

        assert await client.list_categories() == ["Groceries", "Rent", "Travel"]
        pages = [call.kwargs["params"]["page"] for call in session.request.call_args_list]
        assert pages == [1, 2]

    @pytest.mark.asyncio
    async def test_empty(self, client, session):
        session.request.return_value = make_response(200, {"data": [], "meta": {}})

        assert await client.list_categories() == []

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, client, session):
        session.request.return_value = make_response(200, {"data": [{"id": "1"}]})

        with pytest.raises(LedgerResponseError, match="Unexpected categories response"):
            await client.list_categories()


class TestClientLifecycle:
    """Construction and shutdown."""

    def test_from_config(self, config):
        client = FireflyLedgerClient.from_config(config)
        assert client._base_url == "https://firefly.example.org"
        assert client._timeout == config.firefly_timeout_seconds
        client.close()

    def test_close_closes_session(self, client, session):
        client.close()
        session.close.assert_called_once()

    def test_api_key_not_in_repr(self, client):
        assert API_KEY not in repr(client._api_key)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
