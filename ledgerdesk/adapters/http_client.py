"""Shared async HTTP transport for ledger adapters.

This module provides a thin wrapper around ``httpx.AsyncClient`` so every
ledger client built for a principal can share one connection pool, timeout
policy, and retry behavior while sending its own identity headers.

Dependencies:
    - ``httpx`` for network I/O.
    - ``ledgerdesk.adapters.api_errors.ApiTimeoutError`` for typed transport
      failures.

Call context:
    - Constructed once by ``ledgerdesk.app.client_factory.ClientFactory``.
    - Used only inside ``ledgerdesk.adapters.ledger_rpc``; use cases interact
      through ``LedgerPort``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ledgerdesk.adapters.api_errors import ApiError, ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for ledger calls.

    Attributes:
        request_timeout_s: Timeout in seconds for one request.
        retries: Retry attempts after the initial request. Applied to
            read-only queries only; state-changing calls are sent once.
    """
    request_timeout_s: float = 10
    retries: int = 2


class AsyncRetryingSession:
    """Shared ``httpx`` wrapper with JSON headers and a query retry loop.

    This class is intentionally transport-only. Callers provide endpoint URLs
    and decide how to map non-2xx responses into adapter errors.
    """

    def __init__(
        self,
        cfg: Optional[HttpConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Create the pooled client.

        Args:
            cfg: Shared timeout and retry settings.
            transport: Optional ``httpx`` transport, used by tests to plug in
                ``httpx.MockTransport``.
        """
        self.cfg = cfg or HttpConfig()
        self.client = httpx.AsyncClient(
            timeout=self.cfg.request_timeout_s,
            transport=transport,
        )

    @staticmethod
    def _headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if extra:
            headers.update(extra)
        return headers

    async def post(
        self,
        url: str,
        *,
        json_body: Any,
        headers: Optional[Dict[str, str]] = None,
        retry: bool = False,
    ) -> httpx.Response:
        """Send a JSON POST, retrying timeouts only when ``retry`` is set.

        Returns:
            ``httpx.Response`` from the first attempt that got an answer.

        Raises:
            ApiTimeoutError: If every attempt failed with timeout/connection
                errors.
            ApiError: For any other transport-level ``httpx`` failure.
        """
        context = f"POST {url}"
        attempts = self.cfg.retries + 1 if retry else 1
        last_err: Optional[ApiError] = None
        for _ in range(attempts):
            try:
                return await self.client.post(
                    url,
                    json=json_body,
                    headers=self._headers(headers),
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_err = ApiTimeoutError(f"Timeout contacting {url}", context=context)
                last_err.__cause__ = exc
            except httpx.HTTPError as exc:
                raise ApiError(str(exc), context=context) from exc
        assert last_err is not None
        raise last_err

    async def aclose(self) -> None:
        await self.client.aclose()


__all__ = ["AsyncRetryingSession", "HttpConfig"]
