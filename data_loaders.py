"""
Attendee sources.

Important: Keep imports light at module import time (Streamlit Cloud startup).
We import pandas/requests only inside functions.
"""

import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from config import FIRESTORE_MAX_ATTEMPTS, HTTP_TIMEOUT_S
from errors import AttendeeSourceError
from utils import single_line

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"


@dataclass(frozen=True)
class AttendeeRecord:
    id: str
    display_name: str


def _find_column(df: Any, exact: Optional[str], *subs) -> Optional[str]:
    """Find column by exact name or by substrings (all must match, case-insensitive)."""
    df_cols = [str(c).strip() for c in df.columns]
    if exact and exact in df_cols:
        return exact
    low = exact.lower() if exact else ""
    for c in df.columns:
        cs = str(c).strip()
        if exact and cs.lower() == low:
            return c
        if subs and all(s.lower() in cs.lower() for s in subs):
            return c
    return None


def _clean(v) -> str:
    if v is None or (isinstance(v, float) and str(v) == "nan"):
        return ""
    s = str(v).strip()
    return "" if s.lower() == "nan" else s


def _is_active(status) -> bool:
    """Only status 1 / "1" users are active (drafts and deleted rows are skipped)."""
    s = _clean(status)
    return s in ("1", "1.0")


def make_record(record_id, name) -> Optional[AttendeeRecord]:
    """Build a record; the display name falls back to the id. None if there is no id."""
    rid = _clean(record_id)
    if not rid:
        return None
    return AttendeeRecord(id=rid, display_name=single_line(_clean(name)) or rid)


def _dedupe(records: List[AttendeeRecord]) -> List[AttendeeRecord]:
    seen = set()
    out = []
    for r in records:
        if r.id in seen:
            continue
        seen.add(r.id)
        out.append(r)
    return out


def load_attendees_dataframe(path: str, sheet: str = "Sheet1") -> Any:
    """
    Load attendees from Excel or CSV into a DataFrame with columns:
    ID, Name, Event_ID, Status.

    Missing Event_ID/Status columns are filled with "" / 1 (every row active).
    Rows without an id are dropped; duplicate ids keep the first row.
    """
    import pandas as pd

    p = Path(path)
    suf = p.suffix.lower()
    try:
        if suf in (".xlsx", ".xls"):
            try:
                df = pd.read_excel(path, sheet_name=sheet, dtype=str, keep_default_na=False)
            except ImportError as e:
                if "openpyxl" in str(e).lower():
                    raise ImportError(
                        "Reading Excel requires openpyxl. Install it with:\n  pip install openpyxl"
                    ) from e
                raise
        else:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise AttendeeSourceError(f"Could not read attendees from {p.name}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    id_col = (
        _find_column(df, "ID")
        or _find_column(df, "User ID")
        or _find_column(df, "Attendee ID")
        or _find_column(df, None, "user", "id")
    )
    if not id_col:
        raise AttendeeSourceError(
            f"Could not find an ID column in {p.name}. Columns: {list(df.columns)}"
        )
    name_col = (
        _find_column(df, "Name")
        or _find_column(df, "Full Name")
        or _find_column(df, None, "name")
    )
    event_col = _find_column(df, "Event ID") or _find_column(df, "eventId") or _find_column(df, None, "event")
    status_col = _find_column(df, "Status")

    total_rows = len(df)
    rows = []
    for _, r in df.iterrows():
        rid = _clean(r.get(id_col, ""))
        if not rid:
            continue
        rows.append(
            {
                "ID": rid,
                "Name": _clean(r.get(name_col, "")) if name_col else "",
                "Event_ID": _clean(r.get(event_col, "")) if event_col else "",
                "Status": _clean(r.get(status_col, "")) if status_col else "1",
            }
        )
    out = pd.DataFrame(rows, columns=["ID", "Name", "Event_ID", "Status"])
    before_dedup = len(out)
    out = out.drop_duplicates(subset=["ID"]).reset_index(drop=True)
    out.attrs["load_stats"] = {
        "source_rows": total_rows,
        "skipped_missing_id": total_rows - before_dedup,
        "loaded_rows": len(out),
        "dropped_duplicate_id": before_dedup - len(out),
    }
    return out


def records_from_dataframe(df: Any, event_id: Optional[str] = None) -> List[AttendeeRecord]:
    """
    Active attendees of `event_id`, in file order.

    Files without any event ids (single-event exports) match every event;
    `event_id=None` matches everything.
    """
    rows = df.to_dict("records")
    has_events = any(_clean(row.get("Event_ID", "")) for row in rows)
    records = []
    for row in rows:
        if event_id is not None and has_events and _clean(row.get("Event_ID", "")) != str(event_id):
            continue
        if not _is_active(row.get("Status", "1")):
            continue
        rec = make_record(row.get("ID"), row.get("Name"))
        if rec is not None:
            records.append(rec)
    return _dedupe(records)


class DataFrameAttendeeSource:
    """Attendee source over a loaded CSV/Excel DataFrame."""

    def __init__(self, df: Any):
        self.df = df

    @classmethod
    def from_path(cls, path: str, sheet: str = "Sheet1") -> "DataFrameAttendeeSource":
        return cls(load_attendees_dataframe(path, sheet=sheet))

    def event_ids(self) -> List[str]:
        ids = [e for e in self.df["Event_ID"].astype(str).tolist() if e]
        return list(dict.fromkeys(ids))

    def list_attendees(self, event_id: str) -> List[AttendeeRecord]:
        return records_from_dataframe(self.df, event_id)


def _decode_value(value: Dict[str, Any]) -> Any:
    """Decode one Firestore REST typed value (only the scalar kinds we read)."""
    if not isinstance(value, dict):
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        try:
            return int(value["integerValue"])
        except (TypeError, ValueError):
            return value["integerValue"]
    if "doubleValue" in value:
        return value["doubleValue"]
    if "booleanValue" in value:
        return value["booleanValue"]
    return None


def _raise_with_response(prefix: str, endpoint: str, resp) -> None:
    ct = (resp.headers.get("Content-Type") or "").split(";")[0].strip() or "unknown"
    snippet = (resp.text or "")[:500]
    raise AttendeeSourceError(
        f"{prefix} (status: {resp.status_code}, content-type: {ct}). "
        f"Endpoint: {endpoint}. "
        f"Body (first 500 chars): {snippet}"
    )


def load_attendees_firestore(
    *,
    project_id: str,
    tenant_id: str,
    event_id: str,
    api_key: Optional[str] = None,
    id_token: Optional[str] = None,
    timeout_s: int = HTTP_TIMEOUT_S,
    max_attempts: int = FIRESTORE_MAX_ATTEMPTS,
) -> List[AttendeeRecord]:
    """
    Load active attendees of one event from Firestore (REST `runQuery`).

    Reads `tenants/{tenant_id}/users` where eventId == event_id, ordered by
    document id, keeping only status 1 / "1".
    """
    try:
        import requests  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "Firestore integration requires 'requests'. Install it with:\n"
            "  pip install requests"
        ) from e

    project_id = (project_id or "").strip()
    tenant_id = (tenant_id or "").strip()
    event_id = (event_id or "").strip()
    if not project_id or not tenant_id:
        raise ValueError("Firestore requires project_id and tenant_id.")
    if not event_id:
        raise ValueError("No event selected.")

    endpoint = (
        f"{FIRESTORE_BASE_URL}/projects/{quote(project_id, safe='')}/databases/(default)"
        f"/documents/tenants/{quote(tenant_id, safe='')}:runQuery"
    )
    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    if id_token:
        headers["Authorization"] = f"Bearer {id_token}"
    params = {"key": api_key} if api_key else None
    body = {
        "structuredQuery": {
            "from": [{"collectionId": "users"}],
            "where": {
                "fieldFilter": {
                    "field": {"fieldPath": "eventId"},
                    "op": "EQUAL",
                    "value": {"stringValue": event_id},
                }
            },
            "orderBy": [{"field": {"fieldPath": "__name__"}, "direction": "ASCENDING"}],
        }
    }

    last_exc: Optional[Exception] = None
    resp = None
    for attempt in range(max(1, int(max_attempts))):
        try:
            resp = requests.post(endpoint, params=params, headers=headers, json=body, timeout=timeout_s)
        except Exception as e:
            last_exc = e
            resp = None
            time.sleep(min(6.0, 0.6 * (2**attempt) + random.random() * 0.25))
            continue
        # Retry transient errors with backoff
        if resp.status_code in (429, 500, 502, 503):
            time.sleep(min(6.0, 0.6 * (2**attempt) + random.random() * 0.25))
            continue
        break
    if resp is None:
        raise AttendeeSourceError(f"Failed to fetch users: {last_exc}") from last_exc

    if resp.status_code in (401, 403):
        _raise_with_response("Failed to fetch users: Firestore access denied", endpoint, resp)
    if resp.status_code == 404:
        _raise_with_response("Failed to fetch users: tenant not found", endpoint, resp)
    if resp.status_code != 200:
        _raise_with_response("Failed to fetch users", endpoint, resp)

    try:
        data = resp.json()
    except ValueError as e:
        raise AttendeeSourceError(f"Failed to fetch users: response was not valid JSON ({e})") from e
    if not isinstance(data, list):
        raise AttendeeSourceError(f"Unexpected Firestore response type: {type(data).__name__}")

    records = []
    for item in data:
        doc = item.get("document") if isinstance(item, dict) else None
        if not doc:
            # `readTime`-only entries mean "no results"
            continue
        fields = {k: _decode_value(v) for k, v in (doc.get("fields") or {}).items()}
        if not _is_active(fields.get("status")):
            continue
        rec = make_record(str(doc.get("name", "")).rsplit("/", 1)[-1], fields.get("name"))
        if rec is not None:
            records.append(rec)
    return _dedupe(records)


class FirestoreAttendeeSource:
    """Attendee source backed by a tenant's Firestore `users` collection."""

    def __init__(self, project_id: str, tenant_id: str, api_key: Optional[str] = None, id_token: Optional[str] = None):
        self.project_id = project_id
        self.tenant_id = tenant_id
        self.api_key = api_key
        self.id_token = id_token

    def list_attendees(self, event_id: str) -> List[AttendeeRecord]:
        return load_attendees_firestore(
            project_id=self.project_id,
            tenant_id=self.tenant_id,
            event_id=event_id,
            api_key=self.api_key,
            id_token=self.id_token,
        )
