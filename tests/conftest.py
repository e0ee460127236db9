import pytest
import requests

from server.app import create_app


@pytest.fixture
def db_uri(tmp_path):
    return str(tmp_path / "attendance.db")


@pytest.fixture
def app(db_uri):
    app = create_app(db_uri)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, usn, name, face=(0.0, 0.0, 0.0, 0.0)):
    return client.post("/api/students/register",
                       json={"usn": usn, "name": name, "faceData": list(face)})


def start_session(client, semester=1):
    r = client.post("/api/attendance/sessions", json={"semester": semester})
    assert r.status_code == 201
    return r.get_json()["sessionId"]


def mark(client, session_id, usn, status="present"):
    return client.post("/api/attendance/mark",
                       json={"sessionId": session_id, "usn": usn, "status": status})


class _Response:
    def __init__(self, resp):
        self.status_code = resp.status_code
        self.text = resp.get_data(as_text=True)
        self._json = resp.get_json(silent=True)

    def json(self):
        if self._json is None:
            raise ValueError("no JSON body")
        return self._json


class FlaskHttp:
    """requests.Session stand-in that routes calls into a Flask test client."""

    def __init__(self, client):
        self.client = client
        self.calls = []
        self.down = False

    def request(self, method, url, timeout=None, json=None):
        path = url.split("://", 1)[-1]
        path = path[path.index("/"):]
        self.calls.append((method, path, json))
        if self.down:
            raise requests.ConnectionError("backend down")
        return _Response(self.client.open(path, method=method, json=json))

    def marks(self):
        return [body for method, path, body in self.calls if path == "/api/attendance/mark"]


@pytest.fixture
def http(client):
    return FlaskHttp(client)
