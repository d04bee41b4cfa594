"""
HTTP client for the Coincheck REST API.

**Conceptual**: A thin wrapper around requests. It signs private calls,
maps HTTP failures to exceptions and normalises the few fields the rest of
the adapter reads (numbers arrive as strings, timestamps as ISO strings). It
does NOT interpret orders or positions; that is the adapter's and the
strategies' job.

**Authentication**: Private endpoints need three headers:
  - ACCESS-KEY: the API key
  - ACCESS-NONCE: a strictly increasing integer (milliseconds here)
  - ACCESS-SIGNATURE: hex HMAC-SHA256(secret, nonce + full_url + body)

**No retries**: every call is fire-once. Timeouts and connection failures
surface as CoincheckClientError (a TransportError); retry policy belongs to
the caller.
"""

import hashlib
import hmac
import json
import threading
import time
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import pandas as pd
import requests

from coincheck_adapter.config.settings import CoincheckSettings
from coincheck_adapter.utils.errors import TransportError, UnexpectedReply
from coincheck_adapter.utils.time import to_utc_timestamp

# Page size for paginated history endpoints (Coincheck maximum).
PAGE_LIMIT = 100


class CoincheckClientError(TransportError):
    """Base exception for Coincheck HTTP failures."""
    pass


class CoincheckAuthenticationError(CoincheckClientError):
    """
    Raised on 401/403.

    **Recovery**: Check COINCHECK_API_KEY / COINCHECK_API_SECRET and the key's
    permissions on the Coincheck dashboard.
    """
    pass


class CoincheckRateLimitError(CoincheckClientError):
    """Raised on 429 Too Many Requests."""
    pass


class CoincheckServerError(CoincheckClientError):
    """Raised on 5xx responses."""
    pass


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


class CoincheckClient:
    """
    Thin HTTP client for Coincheck.

    **Responsibilities**:
      - Build URLs and sign private requests
      - Make HTTP requests with timeout
      - Map HTTP errors to exceptions
      - Page through history endpoints
      - Convert numeric strings and timestamps

    **NOT responsible for**:
      - Deciding what an order's status is (OrderReconciler)
      - Building order requests (placement strategies)

    **Example usage**:
        >>> settings = CoincheckSettings.from_env()
        >>> with CoincheckClient(settings) as client:
        ...     books = client.get_order_books()
        ...     print(books["asks"][0])  # [price, size]
    """

    def __init__(self, settings: CoincheckSettings, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            settings: Coincheck credentials and endpoint configuration.
            session: Optional pre-built session (tests, connection reuse).
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "coincheck_adapter/1.0",
        })
        self._nonce_lock = threading.Lock()
        self._last_nonce = 0

    # ========================================================================
    # Public endpoints
    # ========================================================================

    def get_order_books(self) -> Dict[str, List[List[float]]]:
        """
        Fetch the current order book.

        Returns:
            {"asks": [[price, size], ...], "bids": [[price, size], ...]} with
            float values, in exchange order (best price first).
        """
        reply = self._request("GET", "/api/order_books")
        try:
            return {
                side: [[float(price), float(size)] for price, size in reply.get(side, [])]
                for side in ("asks", "bids")
            }
        except (TypeError, ValueError) as e:
            raise UnexpectedReply(f"Malformed order book: {e}", reply=reply) from e

    # ========================================================================
    # Private endpoints
    # ========================================================================

    def get_accounts_balance(self) -> Dict[str, Any]:
        """
        Fetch account balances.

        Returns:
            The balance reply with numeric fields ("jpy", "btc", "btc_reserved",
            ...) converted to floats.
        """
        reply = self._require_success(self._request("GET", "/api/accounts/balance", private=True))
        balance: Dict[str, Any] = {}
        for key, value in reply.items():
            if key == "success":
                continue
            try:
                balance[key] = float(value)
            except (TypeError, ValueError):
                balance[key] = value
        return balance

    def get_open_orders(self) -> Dict[str, Any]:
        """
        Fetch orders still on the book.

        Returns:
            {"orders": [...]} where each order has "id" as a string and
            "pending_amount" as a float (None when the exchange omitted it).
        """
        reply = self._require_success(
            self._request("GET", "/api/exchange/orders/opens", private=True)
        )
        orders = []
        for raw in reply.get("orders", []):
            order = dict(raw)
            order["id"] = str(raw.get("id"))
            order["pending_amount"] = _to_float(raw.get("pending_amount"))
            order["rate"] = _to_float(raw.get("rate"))
            orders.append(order)
        return {"orders": orders}

    def get_transactions_since(self, start: pd.Timestamp) -> List[Dict[str, Any]]:
        """
        Fetch own fills created at or after start.

        **Pagination**: Pages newest-first and stops at the first page that is
        short, empty, or reaches a fill older than start.

        Args:
            start: Earliest fill time to include (UTC).

        Returns:
            Fills with "order_id" (str), "created_at" (UTC Timestamp),
            "rate" (float) and "funds" ({currency: float delta}).
        """
        start = to_utc_timestamp(start)
        transactions = []
        for raw in self._paginate("/api/exchange/orders/transactions_pagination", stop_before=start):
            transaction = self._normalise_transaction(raw)
            if transaction["created_at"] >= start:
                transactions.append(transaction)
        return transactions

    def get_open_leverage_positions(self) -> List[Dict[str, Any]]:
        """
        Fetch all open leverage positions.

        Returns:
            Positions with "id" (str), "side" ("buy"/"sell"), "amount" (float)
            and "created_at" (UTC Timestamp), newest first.
        """
        positions = []
        for raw in self._paginate("/api/exchange/leverage/positions", params={"status": "open"}):
            position = dict(raw)
            position["id"] = str(raw.get("id"))
            position["amount"] = float(raw["amount"])
            position["created_at"] = to_utc_timestamp(raw["created_at"])
            positions.append(position)
        return positions

    def new_order(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Submit a new order.

        The reply is returned as is; callers check its "success" flag.

        Args:
            request: Order parameters (pair, order_type, rate, amount, ...).
                    Keys with None values are dropped.
        """
        body = {k: v for k, v in request.items() if v is not None}
        return self._request("POST", "/api/exchange/orders", body=body, private=True)

    def cancel_order(self, order_id: str) -> Dict[str, Any]:
        """
        Cancel an open order.

        The reply is returned as is; callers check its "success" flag.
        """
        return self._request("DELETE", f"/api/exchange/orders/{order_id}", private=True)

    # ========================================================================
    # Internal helper methods
    # ========================================================================

    def _next_nonce(self) -> str:
        # Strictly increasing even if two calls land in the same millisecond
        with self._nonce_lock:
            nonce = max(int(time.time() * 1000), self._last_nonce + 1)
            self._last_nonce = nonce
        return str(nonce)

    def _sign(self, nonce: str, url: str, body: str) -> str:
        message = (nonce + url + body).encode("utf-8")
        return hmac.new(
            self.settings.api_secret.encode("utf-8"), message, hashlib.sha256
        ).hexdigest()

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        private: bool = False,
    ) -> Dict[str, Any]:
        """
        Make one HTTP call and return the decoded JSON object.

        Raises:
            CoincheckAuthenticationError: 401/403.
            CoincheckRateLimitError: 429.
            CoincheckServerError: 5xx.
            CoincheckClientError: other 4xx, timeouts, connection failures.
            UnexpectedReply: body is not a JSON object.
        """
        url = f"{self.settings.base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        payload = json.dumps(body) if body is not None else ""

        headers = {}
        if body is not None:
            headers["Content-Type"] = "application/json"
        if private:
            nonce = self._next_nonce()
            headers.update({
                "ACCESS-KEY": self.settings.api_key,
                "ACCESS-NONCE": nonce,
                "ACCESS-SIGNATURE": self._sign(nonce, url, payload),
            })

        try:
            response = self.session.request(
                method,
                url,
                data=payload or None,
                headers=headers,
                timeout=self.settings.timeout_seconds,
            )
        except requests.Timeout as e:
            raise CoincheckClientError(
                f"{method} {path} timed out after {self.settings.timeout_seconds}s."
            ) from e
        except requests.ConnectionError as e:
            raise CoincheckClientError(
                f"Failed to connect to Coincheck at {self.settings.base_url}."
            ) from e
        except requests.RequestException as e:
            raise CoincheckClientError(f"HTTP request failed: {e}") from e

        if response.status_code in (401, 403):
            raise CoincheckAuthenticationError(
                f"Authentication failed (status {response.status_code}). "
                f"Check COINCHECK_API_KEY / COINCHECK_API_SECRET. Response: {response.text}"
            )
        if response.status_code == 429:
            raise CoincheckRateLimitError(
                f"Rate limit exceeded. Response: {response.text}"
            )
        if response.status_code >= 500:
            raise CoincheckServerError(
                f"Coincheck server error (status {response.status_code}). "
                f"Response: {response.text}"
            )
        # Coincheck reports refused orders/cancels as 4xx with {"success": false}.
        # Those bodies are returned so callers can check the flag themselves.
        if 400 <= response.status_code < 500:
            try:
                data = self._decode(response)
            except UnexpectedReply:
                data = {}
            if data.get("success") is False:
                return data
            raise CoincheckClientError(
                f"Client error (status {response.status_code}) on {method} {path}. "
                f"Response: {response.text}"
            )

        return self._decode(response)

    def _decode(self, response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise UnexpectedReply(
                f"Failed to parse JSON response: {e}. Response: {response.text}"
            ) from e
        if not isinstance(data, dict):
            raise UnexpectedReply(
                f"Expected a JSON object, got {type(data).__name__}", reply=data
            )
        return data

    def _require_success(self, reply: Dict[str, Any]) -> Dict[str, Any]:
        if reply.get("success") is False:
            raise UnexpectedReply(
                f"Coincheck returned an error: {reply.get('error', reply)}", reply=reply
            )
        return reply

    def _paginate(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        stop_before: Optional[pd.Timestamp] = None,
    ) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        query: Dict[str, Any] = dict(params or {})
        query.update({"limit": PAGE_LIMIT, "order": "desc"})
        while True:
            reply = self._require_success(
                self._request("GET", path, params=query, private=True)
            )
            page = reply.get("data") or []
            items.extend(page)
            if len(page) < PAGE_LIMIT:
                break
            if stop_before is not None and to_utc_timestamp(page[-1]["created_at"]) < stop_before:
                break
            query["starting_after"] = page[-1]["id"]
        return items

    def _normalise_transaction(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            transaction = dict(raw)
            transaction["order_id"] = str(raw["order_id"])
            transaction["created_at"] = to_utc_timestamp(raw["created_at"])
            transaction["rate"] = float(raw["rate"])
            transaction["funds"] = {k: float(v) for k, v in raw["funds"].items()}
            return transaction
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UnexpectedReply(f"Malformed transaction: {e}", reply=dict(raw)) from e

    def close(self):
        """Close the HTTP session and release pooled connections."""
        self.session.close()

    def __enter__(self):
        """Enable context manager support (with statement)."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up session when exiting context manager."""
        self.close()
        return False  # Don't suppress exceptions
