"""Loading application records from the hosted backend or local files."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import requests
import yaml
from filelock import FileLock, Timeout
from pydantic import ValidationError

from .config import Config
from .models import ApplicationRecord

logger = logging.getLogger(__name__)

APPLICATIONS_TABLE = "job_applications"
EVENTS_TABLE = "job_application_events"


class StoreError(Exception):
    """Raised when application records cannot be loaded."""


class SupabaseStore:
    """Read-only client for the backend's REST interface."""

    def __init__(
        self,
        url: str,
        key: str,
        access_token: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.key = key
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.access_token or self.key}",
            "Accept": "application/json",
        }

    def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        response = self.session.get(
            f"{self.base_url}/{table}",
            headers=self._headers(),
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def fetch_applications(self, user_id: Optional[str] = None) -> list[ApplicationRecord]:
        """Fetch the user's applications with their timeline events attached."""
        params = {"select": "*", "order": "created_at.desc"}
        if user_id:
            params["user_id"] = f"eq.{user_id}"

        try:
            rows = self._select(APPLICATIONS_TABLE, params)
        except (requests.RequestException, ValueError) as e:
            raise StoreError(f"Failed to fetch applications: {e}") from e

        events_by_job = self._fetch_events([str(row.get("id")) for row in rows], user_id)

        records = []
        for row in rows:
            job_id = str(row.get("id"))
            try:
                records.append(
                    ApplicationRecord.model_validate(
                        {**row, "events": events_by_job.get(job_id, [])}
                    )
                )
            except ValidationError as e:
                logger.warning(f"Skipping malformed application row {job_id}: {e}")

        logger.info(f"Fetched {len(records)} applications from backend")
        return records

    def _fetch_events(
        self, job_ids: list[str], user_id: Optional[str]
    ) -> dict[str, list[dict[str, Any]]]:
        if not job_ids:
            return {}

        params = {"select": "*", "job_id": f"in.({','.join(job_ids)})"}
        if user_id:
            params["user_id"] = f"eq.{user_id}"

        try:
            rows = self._select(EVENTS_TABLE, params)
        except (requests.RequestException, ValueError) as e:
            # Applications still render without their timeline
            logger.error(f"Error fetching events: {e}")
            return {}

        events: dict[str, list[dict[str, Any]]] = {}
        for row in rows:
            events.setdefault(str(row.get("job_id")), []).append(
                {
                    "title": row.get("title") or "",
                    "description": row.get("description"),
                    "date": row.get("date"),
                }
            )
        return events


def _records_from_data(data: Any, source: Path) -> list[ApplicationRecord]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("applications", [])
    if not isinstance(data, list):
        raise StoreError(f"Expected a list of applications in {source}")

    try:
        return [ApplicationRecord.model_validate(item) for item in data]
    except ValidationError as e:
        raise StoreError(f"Invalid application record in {source}: {e}") from e


def load_records_file(path: Path) -> list[ApplicationRecord]:
    """Load records from a YAML or JSON file."""
    if not path.exists():
        raise StoreError(f"Records file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise StoreError(f"Could not read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise StoreError(f"Could not parse {path}: {e}") from e

    records = _records_from_data(data, path)
    logger.info(f"Loaded {len(records)} applications from {path}")
    return records


def _lock_for(path: Path) -> FileLock:
    return FileLock(str(path) + ".lock", timeout=10)


def save_snapshot(records: list[ApplicationRecord], path: Path) -> None:
    """Persist the last fetched records so the calendar can render offline."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.model_dump(mode="json") for record in records]

    with _lock_for(path):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    logger.debug(f"Saved snapshot of {len(records)} applications to {path}")


def load_snapshot(path: Path) -> list[ApplicationRecord]:
    if not path.exists():
        return []

    try:
        with _lock_for(path):
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
    except (OSError, UnicodeDecodeError, Timeout) as e:
        raise StoreError(f"Could not read snapshot {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise StoreError(f"Corrupt snapshot {path}: {e}") from e

    return _records_from_data(data, path)


def load_records(config: Config) -> list[ApplicationRecord]:
    """Load records from the backend when configured, else from the local records file."""
    key = config.backend_key
    if config.supabase_url and key:
        with requests.Session() as session:
            store = SupabaseStore(config.supabase_url, key, session=session)
            try:
                records = store.fetch_applications(config.user_id)
            except StoreError as e:
                logger.error(f"{e}; falling back to snapshot {config.snapshot_file}")
                return load_snapshot(config.snapshot_file)

        try:
            save_snapshot(records, config.snapshot_file)
        except (OSError, Timeout) as e:
            logger.warning(f"Could not save snapshot {config.snapshot_file}: {e}")
        return records

    if config.records_file is not None:
        return load_records_file(config.records_file)

    logger.info("No record source configured")
    return []
