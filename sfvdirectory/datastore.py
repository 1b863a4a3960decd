"""Thin PostgREST client used to read directory rows from Supabase."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from .config import DataStoreSettings
from .errors import DataAccessError

LOGGER = logging.getLogger(__name__)


def eq(value: object) -> str:
    return f"eq.{value}"


def neq(value: object) -> str:
    return f"neq.{value}"


def in_(values: Iterable[object]) -> str:
    return "in.(" + ",".join(str(value) for value in values) + ")"


class SupabaseClient:
    """Row-filtered reads and the single hero-image update over the REST API."""

    def __init__(
        self,
        settings: DataStoreSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": settings.api_key,
                "Authorization": f"Bearer {settings.api_key}",
                "Accept": "application/json",
            }
        )

    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Mapping[str, str] | None = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, str] = {"select": " ".join(columns.split())}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        LOGGER.debug("GET %s %s", table, params)
        payload = self._request("GET", table, params=params)
        if not isinstance(payload, list):
            raise DataAccessError(f"Unexpected payload from {table}: expected a list of rows")
        return [row for row in payload if isinstance(row, dict)]

    def update(self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, str]) -> None:
        if not filters:
            raise ValueError("Refusing to update without a filter")
        LOGGER.debug("PATCH %s %s", table, dict(filters))
        self._request(
            "PATCH",
            table,
            params=dict(filters),
            json=dict(values),
            headers={"Prefer": "return=minimal"},
        )

    def _request(self, method: str, table: str, **kwargs: Any) -> Any:
        url = f"{self.settings.rest_url}/{table}"
        try:
            response = self._session.request(method, url, timeout=self.settings.timeout, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as exc:
            detail = ""
            if exc.response is not None:
                detail = exc.response.text.strip()[:300]
            raise DataAccessError(f"{method} {table} failed: {exc} {detail}".strip()) from exc
        except requests.RequestException as exc:
            raise DataAccessError(f"{method} {table} failed: {exc}") from exc
        if method != "GET" or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DataAccessError(f"{method} {table} returned invalid JSON: {exc}") from exc
