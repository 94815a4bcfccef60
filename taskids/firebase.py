"""
Realtime Database store over the REST API.

Reads use GET <database_url>/<path>.json, the owner list is fetched with
shallow=true so task payloads are not downloaded twice. Updates use PATCH,
which only touches the fields sent.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote, urlparse

import requests

from .errors import ConfigurationError
from .storage import Store, children_of, join_path

SCOPES = [
    "https://www.googleapis.com/auth/firebase.database",
    "https://www.googleapis.com/auth/userinfo.email",
]


def load_credentials(path: Path) -> Dict[str, Any]:
    """Read and sanity-check a credential JSON file."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"serviceAccount file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigurationError(f"serviceAccount file is not valid JSON: {path} ({e})") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"serviceAccount file must contain a JSON object: {path}")
    if data.get("type") != "service_account" and not data.get("database_secret"):
        raise ConfigurationError(
            "serviceAccount file must be a service account key or carry a 'database_secret'"
        )
    return data


class RealtimeDatabaseAuth:
    """Supplies request parameters/headers for a credential."""

    def __init__(self, credentials: Dict[str, Any]):
        self._secret = credentials.get("database_secret")
        self._google = None
        if not self._secret:
            from google.oauth2 import service_account

            try:
                self._google = service_account.Credentials.from_service_account_info(
                    credentials, scopes=SCOPES
                )
            except (ValueError, KeyError) as e:
                raise ConfigurationError(f"Invalid service account key: {e}") from e

    def apply(self, params: Dict[str, str], headers: Dict[str, str]) -> None:
        if self._secret:
            params["auth"] = self._secret
            return
        if not self._google.valid:
            from google.auth.transport.requests import Request

            self._google.refresh(Request())
        headers["Authorization"] = f"Bearer {self._google.token}"


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme in ("http", "https") and p.netloc)
    except Exception:
        return False


class RealtimeDatabaseStore(Store):
    """Store for a Realtime Database instance."""

    def __init__(
        self,
        database_url: str,
        auth: Optional[RealtimeDatabaseAuth] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        if not _valid_url(database_url):
            raise ConfigurationError(f"Invalid database URL: {database_url}")
        self.database_url = database_url.rstrip("/")
        self.auth = auth
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.database_url}/{quote(path.strip('/'))}.json"

    def _request(self, method: str, path: str, params=None, body=None) -> Any:
        params = dict(params or {})
        headers: Dict[str, str] = {}
        if self.auth is not None:
            self.auth.apply(params, headers)
        resp = self.session.request(
            method,
            self._url(path),
            params=params,
            headers=headers,
            json=body,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json() if resp.content else None

    async def read_children(self, path: str, shallow: bool = False) -> Dict[str, Any]:
        params = {"shallow": "true"} if shallow else None
        data = await asyncio.to_thread(self._request, "GET", path, params)
        return children_of(data)

    async def update(self, path: str, key: str, fields: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._request, "PATCH", join_path(path, key), None, fields)

    async def close(self) -> None:
        self.session.close()
