import json
import sys
from pathlib import Path

import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clients import ensure_gpu


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    def __init__(self, gpus, create_response=None, fail_with=None):
        self.gpus = gpus
        self.create_response = create_response
        self.fail_with = fail_with
        self.posted = []

    def get(self, url, headers=None, timeout=None):
        if self.fail_with:
            raise self.fail_with
        return FakeResponse(200, self.gpus)

    def post(self, url, headers=None, json=None, timeout=None):
        self.posted.append((url, json))
        return self.create_response


EXISTING = {
    "id": 5,
    "vendor": "NVIDIA",
    "name": "L40S",
    "generation": "Ada Lovelace",
    "serial_number": "SN-L40S-5",
    "owner": "inference",
    "borrowee": None,
    "status": "in-use",
    "additional_info": {},
}

ARGS = [
    "--vendor", "NVIDIA",
    "--name", "RTX 4090",
    "--generation", "Ada Lovelace",
    "--owner", "lab",
    "--release-year", "2022",
    "--base-url", "http://tracker.test/api/",
]


def test_existing_serial_is_reported_without_posting(capsys):
    session = FakeSession([EXISTING])

    code = ensure_gpu.main(["SN-L40S-5", *ARGS], session=session)

    assert code == 0
    assert session.posted == []
    out = json.loads(capsys.readouterr().out)
    assert out["status"] == "exists"
    assert out["record"] == EXISTING


def test_missing_serial_is_created(capsys):
    created = {**EXISTING, "id": 6, "name": "RTX 4090", "serial_number": "SN-4090-1", "owner": "lab"}
    session = FakeSession(
        [EXISTING],
        create_response=FakeResponse(201, {"message": "GPU added successfully", "id": 6, "gpu": created}),
    )

    code = ensure_gpu.main(["SN-4090-1", *ARGS], session=session)

    assert code == 0
    url, payload = session.posted[0]
    assert url == "http://tracker.test/api/gpus"
    assert payload == {
        "vendor": "NVIDIA",
        "name": "RTX 4090",
        "generation": "Ada Lovelace",
        "serial_number": "SN-4090-1",
        "owner": "lab",
        "release_year": "2022",
    }
    out = json.loads(capsys.readouterr().out)
    assert out["status"] == "created"
    assert out["record"]["id"] == 6


def test_rejected_create_exits_with_application_error(capsys):
    session = FakeSession(
        [],
        create_response=FakeResponse(400, {"error": "Missing required fields", "missing": ["owner"]}),
    )

    code = ensure_gpu.main(["SN-X", "--vendor", "AMD"], session=session)

    assert code == 1
    assert "Missing required fields" in capsys.readouterr().err


def test_network_error_exits_with_two(capsys):
    session = FakeSession([], fail_with=requests.ConnectionError("connection refused"))

    code = ensure_gpu.main(["SN-X", *ARGS], session=session)

    assert code == 2
    assert "NETWORK_ERROR" in capsys.readouterr().err
