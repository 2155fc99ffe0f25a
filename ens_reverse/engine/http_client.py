"""
HTTP client for CCIP-Read gateways, backed by requests.

Gateways answer with JSON ``{"data": "0x..."}`` on success and usually
``{"error"|"message": "..."}`` otherwise. The client never interprets the
payload; it only reports status, the ``data`` field and an error detail.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ens_reverse.engine.errors import HttpTransportError


@dataclass(frozen=True)
class GatewayHttpResponse:
    status_code: int
    payload: Optional[str] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class RequestsHttpClient:
    """Thin requests.Session wrapper with a fixed timeout."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10):
        self._session = session or requests.Session()
        self._timeout = timeout

    def get(self, url: str) -> GatewayHttpResponse:
        try:
            resp = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise HttpTransportError(url, str(e)) from e
        return self._parse(resp)

    def post(self, url: str, body: Dict[str, Any]) -> GatewayHttpResponse:
        try:
            resp = self._session.post(
                url,
                data=json.dumps(body),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise HttpTransportError(url, str(e)) from e
        return self._parse(resp)

    @staticmethod
    def _parse(resp: requests.Response) -> GatewayHttpResponse:
        content_type = resp.headers.get("Content-Type", "") or ""
        payload: Optional[str] = None
        detail: Optional[str] = None

        if "application/json" in content_type:
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                data = body.get("data")
                payload = data if isinstance(data, str) else None
                err = body.get("error") or body.get("message")
                if err is not None:
                    detail = err if isinstance(err, str) else json.dumps(err)
        else:
            payload = resp.text

        if detail is None and not (200 <= resp.status_code < 300):
            detail = resp.reason or None
        return GatewayHttpResponse(status_code=resp.status_code, payload=payload, detail=detail)
