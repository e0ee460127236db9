import pytest

from conftest import register
from vision.errors import BackendError
from vision.ledger_client import LedgerClient


@pytest.fixture
def ledger(http):
    return LedgerClient("http://testserver/", http=http)


def test_roster_and_student_round_trip(ledger):
    ledger.register_student("S1", "Asha", [0.5, 0.25])
    assert ledger.fetch_roster() == [{"usn": "S1", "name": "Asha"}]
    assert ledger.fetch_student("S1")["faceData"] == [0.5, 0.25]


def test_errors_carry_backend_message_and_status(ledger):
    ledger.register_student("S1", "Asha", [0.5])
    with pytest.raises(BackendError) as exc:
        ledger.register_student("S1", "Asha", [0.5])
    assert exc.value.status_code == 409
    assert "already exists" in str(exc.value)


def test_confirm_marks_and_refreshes_summary(client, ledger, http):
    register(client, "S1", "Asha")
    register(client, "S2", "Bala")
    sid = ledger.start_session(2)

    assert ledger.on_confirmed(sid, "S1") is True
    assert http.marks() == [{"sessionId": sid, "usn": "S1", "status": "present"}]
    assert ledger.summary == {"present_count": 1, "absent_count": 0, "total_students": 2}


def test_confirm_reports_failure_when_backend_down(client, ledger, http):
    register(client, "S1", "Asha")
    sid = ledger.start_session(1)
    http.down = True

    assert ledger.on_confirmed(sid, "S1") is False
    with pytest.raises(BackendError) as exc:
        ledger.mark(sid, "S1")
    assert exc.value.status_code is None


def test_confirm_reports_failure_for_unknown_student(ledger):
    sid = ledger.start_session(1)
    assert ledger.on_confirmed(sid, "ghost") is False


def test_summary_keeps_last_value_on_failure(client, ledger, http):
    register(client, "S1", "Asha")
    sid = ledger.start_session(1)
    ledger.on_confirmed(sid, "S1")
    cached = dict(ledger.summary)

    http.down = True
    assert ledger.refresh_summary(sid) == cached


def test_new_session_clears_summary(client, ledger):
    register(client, "S1", "Asha")
    sid = ledger.start_session(1)
    ledger.on_confirmed(sid, "S1")
    ledger.start_session(1)
    assert ledger.summary["present_count"] == 0


def test_usn_with_url_characters(client, ledger):
    register(client, "CS/21?A", "Asha", [0.5, 0.5])
    assert ledger.fetch_student("CS/21?A")["usn"] == "CS/21?A"
    assert client.get("/api/attendance/report/CS%2F21%3FA").get_json() == []
