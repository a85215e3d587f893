"""
Firefly III Ledger Client

Talks to the Firefly III REST API with `requests`:
- POST api/v1/transactions   create a withdrawal
- GET  api/v1/categories     list categories (paginated)

Authentication is a personal access token sent as a Bearer header.

`requests` is blocking, so each call runs in a worker thread and the
event loop keeps serving the chat session while the ledger answers.

CRITICAL: Ledger calls are never retried. One failed call produces one
failure reply in the room; the user decides whether to try again.
"""

import asyncio
from typing import Any, Optional, Union

import requests
import structlog
from pydantic import SecretStr

from expense_bridge.config import BotConfig
from expense_bridge.models.ledger import CreatedTransaction, WithdrawalRequest
from expense_bridge.services.ledger.interface import (
    LedgerConnectionError,
    LedgerInterface,
    LedgerResponseError,
)


FIREFLY_TRANSACTIONS_API = "api/v1/transactions"
FIREFLY_CATEGORIES_API = "api/v1/categories"

TRANSACTION_TYPE_WITHDRAWAL = "withdrawal"

MAX_DETAIL_LENGTH = 200

logger = structlog.get_logger(__name__)


def build_transaction_payload(request: WithdrawalRequest) -> dict[str, Any]:
    """Build the JSON body Firefly expects for a single-split withdrawal."""
    return {
        "error_if_duplicate_hash": False,
        "apply_rules": True,
        "transactions": [
            {
                "type": TRANSACTION_TYPE_WITHDRAWAL,
                "date": request.date.isoformat(),
                "amount": format(request.amount, "f"),
                "description": request.description,
                "category_name": request.category,
                "source_id": str(request.source_account_id),
                "destination_name": request.destination_name,
                "tags": list(request.tags),
                "notes": request.notes,
            }
        ],
    }


def _extract_error_detail(response: requests.Response) -> Optional[str]:
    """
    Pull a short human-readable message out of a Firefly error body.

    Firefly validation errors look like:
        {"message": "The given data was invalid.",
         "errors": {"transactions.0.amount": ["The amount must be ..."]}}
    The first field error is more useful than the generic message.
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    detail = None
    errors = body.get("errors")
    if isinstance(errors, dict):
        for messages in errors.values():
            if isinstance(messages, list) and messages:
                detail = str(messages[0])
                break
    if detail is None and body.get("message"):
        detail = str(body["message"])

    if detail and len(detail) > MAX_DETAIL_LENGTH:
        detail = detail[:MAX_DETAIL_LENGTH - 3] + "..."
    return detail


class FireflyLedgerClient(LedgerInterface):
    """
    Ledger implementation backed by a Firefly III instance.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Union[SecretStr, str],
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key if isinstance(api_key, SecretStr) else SecretStr(api_key)
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: BotConfig) -> "FireflyLedgerClient":
        return cls(
            base_url=config.firefly_url,
            api_key=config.firefly_api_key,
            timeout=config.firefly_timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        # Without an explicit JSON Accept header Firefly redirects to its login page
        return {
            "Authorization": f"Bearer {self._api_key.get_secret_value()}",
            "Accept": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Send one request and map every failure onto a LedgerError.
        """
        url = f"{self._base_url}/{path}"
        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers(),
                timeout=self._timeout,
                **kwargs,
            )
        except requests.Timeout as e:
            raise LedgerConnectionError(
                f"Request to {url} timed out after {self._timeout}s", timed_out=True
            ) from e
        except requests.RequestException as e:
            raise LedgerConnectionError(f"Failed to execute HTTP request: {e}") from e

        if not 200 <= response.status_code < 300:
            raise LedgerResponseError(
                status_code=response.status_code,
                message=f"[{response.status_code}] {response.text[:500]}",
                detail=_extract_error_detail(response),
            )

        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise LedgerResponseError(
                status_code=response.status_code,
                message=f"Response is not JSON: {response.text[:200]}",
            ) from e

    def _create_withdrawal_sync(self, request: WithdrawalRequest) -> CreatedTransaction:
        response = self._request(
            "POST",
            FIREFLY_TRANSACTIONS_API,
            json=build_transaction_payload(request),
        )
        body = self._json(response)

        transaction_id = None
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            transaction_id = body["data"].get("id")
        if transaction_id is None:
            raise LedgerResponseError(
                status_code=response.status_code,
                message="Transaction response has no data.id",
            )

        logger.debug(
            "firefly_transaction_created",
            transaction_id=str(transaction_id),
            category=request.category,
            amount=str(request.amount),
        )
        return CreatedTransaction(
            transaction_id=str(transaction_id),
            category=request.category,
            amount=request.amount,
        )

    def _list_categories_sync(self) -> list[str]:
        names: list[str] = []
        page = 1
        while True:
            response = self._request(
                "GET",
                FIREFLY_CATEGORIES_API,
                params={"page": page},
            )
            body = self._json(response)
            try:
                names.extend(item["attributes"]["name"] for item in body["data"])
                pagination = body.get("meta", {}).get("pagination", {})
                total_pages = int(pagination.get("total_pages", page))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise LedgerResponseError(
                    status_code=response.status_code,
                    message=f"Unexpected categories response: {e}",
                ) from e

            if page >= total_pages:
                return names
            page += 1

    async def create_withdrawal(self, request: WithdrawalRequest) -> CreatedTransaction:
        return await asyncio.to_thread(self._create_withdrawal_sync, request)

    async def list_categories(self) -> list[str]:
        return await asyncio.to_thread(self._list_categories_sync)

    def close(self) -> None:
        self._session.close()
