"""
Collection persistence: a remote spreadsheet store with a local JSON cache.

The remote is the source of truth when reachable. Every write lands in the
cache first, so the app keeps working offline; remote write failures are
logged and left for a later "push all".
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

import requests

from diecast.errors import SyncError
from diecast.models import CAR_COLUMNS, clean_record, record_from_wire, record_to_wire

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 20


# =========================================================
# LOCAL CACHE
# =========================================================

class LocalCache:
    def __init__(self, path):
        self.path = Path(path)

    def read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            return []
        return [clean_record(r) for r in data if isinstance(r, dict)]

    def write(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # photo payloads are upload-only and too large to keep around
        rows = [{c: r.get(c, "") for c in CAR_COLUMNS} for r in records]
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(rows, ensure_ascii=False, indent=1), encoding="utf-8")
        tmp.replace(self.path)


# =========================================================
# APPS SCRIPT REMOTE
# =========================================================

class AppsScriptRemote:
    """
    Google Apps Script web app bound to the collection sheet.
      GET  {url}?t=<ms>                        -> JSON array of rows
      POST {"action": "upsert", "car": {...}}
      POST {"action": "delete", "id": "..."}
    """

    def __init__(self, sync_url: str, session: requests.Session | None = None, timeout: float = REQUEST_TIMEOUT):
        self.sync_url = sync_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_all(self) -> list[dict]:
        try:
            r = self.session.get(
                self.sync_url,
                params={"t": int(time.time() * 1000)},  # defeat the script's response cache
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise SyncError(f"Could not read collection: {e}") from e

        if not isinstance(data, list):
            raise SyncError(f"Unexpected response from sync endpoint: {type(data).__name__}")
        return data

    def _post(self, payload: dict) -> None:
        try:
            # the script reads e.postData.contents as raw text
            r = self.session.post(
                self.sync_url,
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise SyncError(f"Sync endpoint rejected {payload.get('action')}: {e}") from e

    def upsert(self, record: dict) -> None:
        self._post({"action": "upsert", "car": record_to_wire(record)})

    def delete(self, car_id: str) -> None:
        self._post({"action": "delete", "id": str(car_id)})


# =========================================================
# STORE
# =========================================================

class CollectionStore:
    def __init__(self, remote, cache: LocalCache):
        # remote may be None: cache-only mode
        self.remote = remote
        self.cache = cache

    @property
    def has_remote(self) -> bool:
        return self.remote is not None

    def cached(self) -> list[dict]:
        return self.cache.read()

    def load(self) -> list[dict]:
        if self.remote is not None:
            try:
                rows = self.remote.fetch_all()
                records = [record_from_wire(item, i) for i, item in enumerate(rows)]
                self.cache.write(records)
                return records
            except SyncError as e:
                logger.warning("Using local cache: %s", e)
        return self.cache.read()

    def save(self, record: dict) -> list[dict]:
        record = clean_record(record)
        records = self.cache.read()
        idx = next((i for i, r in enumerate(records) if r["car_id"] == record["car_id"]), None)
        if idx is None:
            records = [record] + records
        else:
            records[idx] = record
        self.cache.write(records)

        if self.remote is not None:
            try:
                self.remote.upsert(record)
            except SyncError as e:
                logger.error("Error syncing %s: %s", record["car_id"], e)
        return [{c: r.get(c, "") for c in CAR_COLUMNS} for r in records]

    def delete(self, car_id: str) -> list[dict]:
        car_id = str(car_id)
        records = [r for r in self.cache.read() if r["car_id"] != car_id]
        self.cache.write(records)

        if self.remote is not None:
            try:
                self.remote.delete(car_id)
            except SyncError as e:
                logger.error("Error deleting %s remotely: %s", car_id, e)
        return records

    def push_all(self, records: list[dict], progress=None) -> tuple[int, int]:
        """Upsert every record to the remote. Returns (pushed, failed)."""
        if self.remote is None:
            raise SyncError("No remote store configured.")

        pushed, failed = 0, 0
        total = len(records)
        for i, rec in enumerate(records, start=1):
            try:
                self.remote.upsert(clean_record(rec))
                pushed += 1
            except SyncError as e:
                failed += 1
                logger.error("Error pushing %s: %s", rec.get("model", rec.get("car_id")), e)
            if progress is not None:
                progress(i, total)
        return pushed, failed

    def import_batch(self, new_records: list[dict]) -> list[dict]:
        """Merge imported records into the cache; new ones win on id clashes."""
        combined = [clean_record(r) for r in new_records] + self.cache.read()
        seen = set()
        unique = []
        for r in combined:
            if r["car_id"] in seen:
                continue
            seen.add(r["car_id"])
            unique.append(r)
        self.cache.write(unique)
        return [{c: r.get(c, "") for c in CAR_COLUMNS} for r in unique]
