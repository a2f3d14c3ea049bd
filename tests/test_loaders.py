import sys
import tempfile

import pytest

import data_loaders as loaders
from data_loaders import AttendeeRecord
from errors import AttendeeSourceError


def _csv(text):
    with tempfile.NamedTemporaryFile(mode="w", suffix=".csv", delete=False) as tmp:
        tmp.write(text)
        return tmp.name


def test_load_attendees_dataframe_csv_basic():
    path = _csv("ID,Name,Event ID,Status\nu1,Alex Short,e1,1\nu2,,e1,1\n,Nobody,e1,1\nu1,Dup,e1,1\n")
    df = loaders.load_attendees_dataframe(path)
    assert list(df.columns) == ["ID", "Name", "Event_ID", "Status"]
    assert df["ID"].tolist() == ["u1", "u2"]
    assert df.attrs["load_stats"]["skipped_missing_id"] == 1
    assert df.attrs["load_stats"]["dropped_duplicate_id"] == 1


def test_load_attendees_dataframe_requires_id_column():
    with pytest.raises(AttendeeSourceError):
        loaders.load_attendees_dataframe(_csv("Name\nAlex\n"))


def test_dataframe_source_filters_event_and_status():
    path = _csv(
        "ID,Name,Event ID,Status\n"
        "u1,Alex Short,e1,1\n"
        "u2,Someone,e2,1\n"
        "u3,Kim,e1,1\n"
        "u4,Draft,e1,draft\n"
        "u5,,e1,1\n"
    )
    source = loaders.DataFrameAttendeeSource.from_path(path)
    assert source.event_ids() == ["e1", "e2"]
    assert source.list_attendees("e1") == [
        AttendeeRecord("u1", "Alex Short"),
        AttendeeRecord("u3", "Kim"),
        AttendeeRecord("u5", "u5"),
    ]
    assert source.list_attendees("missing") == []


def test_dataframe_without_event_or_status_columns_matches_any_event():
    source = loaders.DataFrameAttendeeSource.from_path(_csv("ID,Name\nu1,Alex\nu2,Kim\n"))
    assert [r.id for r in source.list_attendees("anything")] == ["u1", "u2"]


def test_excel_ids_keep_their_text_form(tmp_path):
    import pandas as pd

    path = tmp_path / "attendees.xlsx"
    pd.DataFrame(
        {
            "ID": [1001, None, 1003],
            "Name": ["Alex Short", "Nobody", "Kim"],
            "Event ID": [7, 7, 7],
            "Status": [1, 1, 1],
        }
    ).to_excel(path, sheet_name="Sheet1", index=False)
    source = loaders.DataFrameAttendeeSource.from_path(str(path))
    assert [r.id for r in source.list_attendees("7")] == ["1001", "1003"]


class _FakeResp:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.headers = {"Content-Type": "application/json"}
        self.text = ""

    def json(self):
        return self._payload


class _FakeRequests:
    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    def post(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self._responses.pop(0)


def _doc(doc_id, **fields):
    typed = {}
    for k, v in fields.items():
        typed[k] = {"integerValue": str(v)} if isinstance(v, int) else {"stringValue": v}
    return {"document": {"name": f"projects/p/databases/(default)/documents/tenants/t/users/{doc_id}", "fields": typed}}


def _no_sleep(monkeypatch):
    monkeypatch.setattr(loaders, "time", type("T", (), {"sleep": staticmethod(lambda *_a, **_k: None)})())


def test_firestore_returns_active_users_in_order(monkeypatch):
    _no_sleep(monkeypatch)
    fake = _FakeRequests(
        _FakeResp(
            200,
            [
                _doc("u1", name="Alex Short", status=1, eventId="e1"),
                _doc("u2", name="Draft Person", status="draft", eventId="e1"),
                _doc("u3", name="Kim", status="1", eventId="e1"),
                _doc("u4", status=1, eventId="e1"),
            ],
        )
    )
    monkeypatch.setitem(sys.modules, "requests", fake)
    records = loaders.load_attendees_firestore(project_id="p", tenant_id="t", event_id="e1", api_key="k")
    assert records == [AttendeeRecord("u1", "Alex Short"), AttendeeRecord("u3", "Kim"), AttendeeRecord("u4", "u4")]
    (url,), kwargs = fake.calls[0]
    assert url.endswith("/projects/p/databases/(default)/documents/tenants/t:runQuery")
    assert kwargs["params"] == {"key": "k"}
    where = kwargs["json"]["structuredQuery"]["where"]["fieldFilter"]
    assert where["value"] == {"stringValue": "e1"}


def test_firestore_empty_result(monkeypatch):
    _no_sleep(monkeypatch)
    monkeypatch.setitem(sys.modules, "requests", _FakeRequests(_FakeResp(200, [{"readTime": "2024-01-01T00:00:00Z"}])))
    source = loaders.FirestoreAttendeeSource("p", "t", id_token="tok")
    assert source.list_attendees("e1") == []


def test_firestore_retries_transient_errors(monkeypatch):
    _no_sleep(monkeypatch)
    fake = _FakeRequests(_FakeResp(503, None), _FakeResp(200, [_doc("u1", name="A", status=1)]))
    monkeypatch.setitem(sys.modules, "requests", fake)
    records = loaders.load_attendees_firestore(project_id="p", tenant_id="t", event_id="e1", max_attempts=2)
    assert [r.id for r in records] == ["u1"]
    assert len(fake.calls) == 2


def test_firestore_forbidden(monkeypatch):
    _no_sleep(monkeypatch)
    monkeypatch.setitem(sys.modules, "requests", _FakeRequests(_FakeResp(403, {"error": {}})))
    with pytest.raises(AttendeeSourceError, match="Failed to fetch users"):
        loaders.load_attendees_firestore(project_id="p", tenant_id="t", event_id="e1")


def test_firestore_requires_event():
    with pytest.raises(ValueError):
        loaders.load_attendees_firestore(project_id="p", tenant_id="t", event_id="")
