"""
Shared-trip document stores.

Both stores answer the same two lookups (by share token, by trip id) and
return a SharedTripLookup, or None when the trip is unknown or the backend
cannot be reached.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import SessionLocal
from domain.models import SharedTripLookup, TripSnapshot
from repositories.models import SharedTripORM, SharedTripVersionORM
from services.trip_summary import has_preference_values, is_valid_version_id
from settings import settings

logger = logging.getLogger(__name__)
_session = requests.Session()


def _lookup(
    data: Any,
    view_settings: Any,
    latest_version_id: Optional[str],
    resolved_version_id: Optional[str],
) -> Optional[SharedTripLookup]:
    if not isinstance(data, dict):
        return None
    return SharedTripLookup(
        trip=TripSnapshot.from_dict(data),
        view_settings=view_settings if isinstance(view_settings, dict) else None,
        latest_version_id=latest_version_id if isinstance(latest_version_id, str) else None,
        resolved_version_id=resolved_version_id,
    )


class SqlSharedTripStore:
    """Shared trips in the local SQL database."""

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def save_shared_trip(
        self,
        token: str,
        trip_id: str,
        data: Dict[str, Any],
        view_settings: Optional[Dict[str, Any]] = None,
        version_id: Optional[str] = None,
    ) -> None:
        """Upsert a share and, when `version_id` is given, record it as the latest version."""
        with self._session_factory() as session:
            orm = session.get(SharedTripORM, token)
            if orm is None:
                orm = SharedTripORM(token=token, trip_id=trip_id, data=data)
                session.add(orm)
            orm.trip_id = trip_id
            orm.data = data
            orm.view_settings = view_settings
            orm.updated_at = datetime.utcnow()
            if version_id:
                session.add(
                    SharedTripVersionORM(id=version_id, token=token, data=data, view_settings=view_settings)
                )
                orm.latest_version_id = version_id
            session.commit()

    def _version(self, session: Session, token: str, version_id: str) -> Optional[SharedTripVersionORM]:
        version = session.get(SharedTripVersionORM, version_id)
        if version is None or version.token != token:
            return None
        return version

    def _resolve(self, session: Session, share: SharedTripORM, version_id: Optional[str]) -> Optional[SharedTripLookup]:
        if is_valid_version_id(version_id):
            version = self._version(session, share.token, version_id)
            if version is not None:
                return _lookup(version.data, version.view_settings, share.latest_version_id, version.id)

        view_settings = share.view_settings
        if not has_preference_values(view_settings) and is_valid_version_id(share.latest_version_id):
            latest = self._version(session, share.token, share.latest_version_id)
            if latest is not None and has_preference_values(latest.view_settings):
                view_settings = latest.view_settings
        return _lookup(share.data, view_settings, share.latest_version_id, None)

    def get_by_token(self, token: str, version_id: Optional[str] = None) -> Optional[SharedTripLookup]:
        if not token:
            return None
        try:
            with self._session_factory() as session:
                share = session.get(SharedTripORM, token)
                if share is None:
                    return None
                return self._resolve(session, share, version_id)
        except SQLAlchemyError as exc:
            logger.warning("[og-trip] token lookup failed: %s", exc)
            return None

    def get_by_trip_id(self, trip_id: str, version_id: Optional[str] = None) -> Optional[SharedTripLookup]:
        if not trip_id:
            return None
        try:
            with self._session_factory() as session:
                share = (
                    session.query(SharedTripORM)
                    .filter(SharedTripORM.trip_id == trip_id)
                    .order_by(SharedTripORM.updated_at.desc())
                    .first()
                )
                if share is None:
                    return None
                return self._resolve(session, share, version_id)
        except SQLAlchemyError as exc:
            logger.warning("[og-trip] trip id lookup failed: %s", exc)
            return None


class RpcSharedTripStore:
    """Shared trips behind a hosted REST RPC endpoint."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url if base_url is not None else settings.SHARED_TRIP_RPC_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SHARED_TRIP_RPC_KEY
        self.timeout = timeout if timeout is not None else settings.SHARED_TRIP_RPC_TIMEOUT

    def _call(self, name: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.base_url or not self.api_key:
            return None
        try:
            resp = _session.post(
                f"{self.base_url}/rest/v1/rpc/{name}",
                json=payload,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
            if resp.status_code != 200:
                logger.warning("[og-trip] rpc %s returned %s", name, resp.status_code)
                return None
            raw = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("[og-trip] rpc %s failed: %s", name, exc)
            return None
        row = raw[0] if isinstance(raw, list) and raw else raw
        return row if isinstance(row, dict) else None

    def get_by_token(self, token: str, version_id: Optional[str] = None) -> Optional[SharedTripLookup]:
        if not token:
            return None
        if is_valid_version_id(version_id):
            row = self._call("get_shared_trip_version", {"p_token": token, "p_version_id": version_id})
            if row and isinstance(row.get("data"), dict):
                resolved = row.get("version_id")
                return _lookup(
                    row["data"],
                    row.get("view_settings"),
                    row.get("latest_version_id"),
                    resolved if isinstance(resolved, str) else version_id,
                )

        row = self._call("get_shared_trip", {"p_token": token})
        if not row or not isinstance(row.get("data"), dict):
            return None
        latest_version_id = row.get("latest_version_id")
        view_settings = row.get("view_settings")
        if not has_preference_values(view_settings) and is_valid_version_id(latest_version_id):
            latest = self._call("get_shared_trip_version", {"p_token": token, "p_version_id": latest_version_id})
            if latest and has_preference_values(latest.get("view_settings")):
                view_settings = latest["view_settings"]
        return _lookup(row["data"], view_settings, latest_version_id, None)

    def get_by_trip_id(self, trip_id: str, version_id: Optional[str] = None) -> Optional[SharedTripLookup]:
        if not trip_id:
            return None
        payload = {"p_trip_id": trip_id, "p_version_id": version_id if is_valid_version_id(version_id) else None}
        row = self._call("get_shared_trip_by_trip_id", payload)
        if not row:
            return None
        resolved = row.get("version_id")
        return _lookup(
            row.get("data"),
            row.get("view_settings"),
            row.get("latest_version_id"),
            resolved if isinstance(resolved, str) else None,
        )


def get_shared_trip_store():
    """Store selected by SHARED_TRIP_STORE ("sql" or "rpc")."""
    if (settings.SHARED_TRIP_STORE or "sql").strip().lower() == "rpc":
        return RpcSharedTripStore()
    return SqlSharedTripStore()
