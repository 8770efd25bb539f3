"""HTTP pull executor.

Pulls are requested with a JSON POST to the endpoint a payment pointer
resolves to. The payee asks for ``{"amount": "<decimal>"}`` and the endpoint
answers with ``{"totalReceived": "<decimal>"}``. Error responses may carry
``totalReceived`` too, reporting what arrived before the pull broke off.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import requests

from recurra.domain.errors import PaymentError
from recurra.domain.models.pull import PullRequest, PullResult
from recurra.infrastructure.executor.base import PullExecutor
from recurra.infrastructure.http_client import post_json_with_retries, retry_config_from_dict

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = "/.well-known/pay"


def resolve_pointer(pointer: str) -> str:
    """Resolve a payment pointer to an HTTPS URL

    ``$wallet.example/alice`` becomes ``https://wallet.example/alice`` and a bare
    ``$wallet.example`` becomes ``https://wallet.example/.well-known/pay``.
    HTTP(S) URLs are returned unchanged.

    Raises:
        ValueError: If the pointer is malformed
    """
    pointer = pointer.strip()
    if pointer.startswith(("http://", "https://")):
        return pointer
    if not pointer.startswith("$") or len(pointer) < 2:
        raise ValueError(f"Invalid payment pointer: {pointer!r}")

    host, sep, path = pointer[1:].partition("/")
    if not host:
        raise ValueError(f"Invalid payment pointer: {pointer!r}")
    if not sep or not path:
        return f"https://{host}{WELL_KNOWN_PATH}"
    return f"https://{host}/{path}"


def _parse_amount(data: Any) -> Optional[Decimal]:
    if not isinstance(data, dict) or data.get("totalReceived") is None:
        return None
    try:
        return Decimal(str(data["totalReceived"]))
    except InvalidOperation:
        return None


class HttpPullExecutor(PullExecutor):
    """Executor that requests pulls from an HTTP endpoint"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        if config is None:
            config = {}
        super().__init__(config)
        self.auth_token = config.get("auth_token") or os.getenv("RECURRA_HTTP_AUTH_TOKEN")
        self.timeout = float(config.get("timeout", 30))
        self.retry = retry_config_from_dict(config.get("retry") or {})

    def _validate_config(self, config: Dict[str, Any]) -> None:
        if "timeout" in config:
            timeout = config["timeout"]
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValueError("timeout must be a positive number")
        if "auth_token" in config and config["auth_token"] is not None:
            if not isinstance(config["auth_token"], str):
                raise ValueError("auth_token must be a string")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            # Same key for every transport retry of this attempt
            "Idempotency-Key": str(uuid.uuid4()),
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def _pull(self, request: PullRequest) -> PullResult:
        try:
            url = resolve_pointer(request.pointer)
        except ValueError as e:
            raise PaymentError(str(e)) from e

        timeout = request.timeout_ms / 1000.0 if request.timeout_ms else self.timeout
        try:
            response = post_json_with_retries(
                url,
                payload={"amount": str(request.amount)},
                headers=self._headers(),
                timeout=timeout,
                retry=self.retry,
            )
        except requests.exceptions.HTTPError as e:
            partial = None
            if e.response is not None:
                try:
                    partial = _parse_amount(e.response.json())
                except ValueError:
                    partial = None
            raise PaymentError(f"Pull from {url} failed: {e}", total_received=partial) from e
        except RuntimeError as e:
            raise PaymentError(f"Pull from {url} failed: {e}") from e

        try:
            total = _parse_amount(response.json())
        except ValueError as e:
            raise PaymentError(f"Invalid response from {url}: {e}") from e
        if total is None:
            raise PaymentError(f"Response from {url} is missing totalReceived")
        return PullResult(total_received=total)

    async def execute(self, request: PullRequest) -> PullResult:
        # requests is blocking
        return await asyncio.to_thread(self._pull, request)
