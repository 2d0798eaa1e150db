"""Tests for the FastAPI web API."""

import socket
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import yaml
from fastapi.testclient import TestClient

BAD_BROADCAST = "256.0.0.1"


def _write_config(tmp_path: Path) -> Path:
    config = {
        "settings": {"broadcast": "192.168.1.255", "port": 9, "max_workers": 2},
        "devices": [
            {"name": "nas", "mac": "AA:BB:CC:DD:EE:FF", "ip": "192.168.1.10"},
            {"name": "desktop", "mac": "11:22:33:44:55:66", "broadcast": "10.0.0.255"},
        ],
    }
    p = tmp_path / "config.yaml"
    p.write_text(yaml.dump(config))
    return p


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return _write_config(tmp_path)


@pytest.fixture()
def client(config_path: Path):
    from mezame.api.routes import create_app

    return TestClient(create_app(config_path=str(config_path)))


@pytest.fixture()
def mock_socket():
    # Scope the patch to wol's view of the socket module so the TestClient's
    # event loop keeps creating real sockets.
    with patch("mezame.core.wol.socket", SimpleNamespace(**vars(socket))), patch(
        "mezame.core.wol.socket.socket"
    ) as sock_cls:
        yield sock_cls


def _sendto(sock_cls: MagicMock) -> MagicMock:
    return sock_cls.return_value.__enter__.return_value.sendto


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "devices": 2}


class TestListAndGet:
    def test_list_devices(self, client: TestClient) -> None:
        resp = client.get("/api/devices")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 2
        assert [d["name"] for d in data["devices"]] == ["nas", "desktop"]
        assert data["devices"][0]["ip"] == "192.168.1.10"

    def test_get_device(self, client: TestClient) -> None:
        resp = client.get("/api/devices/desktop")
        assert resp.status_code == 200
        assert resp.json()["broadcast"] == "10.0.0.255"

    def test_get_unknown_device(self, client: TestClient) -> None:
        resp = client.get("/api/devices/ghost")
        assert resp.status_code == 404
        assert "ghost" in resp.json()["error"]


class TestAddDevice:
    def test_add_device(self, client: TestClient, config_path: Path) -> None:
        resp = client.post(
            "/api/devices",
            json={"name": "laptop", "mac": "de-ad-be-ef-00-01", "ip": "", "broadcast": ""},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["device"]["mac"] == "DE:AD:BE:EF:00:01"
        assert body["device"]["ip"] is None
        assert "laptop" in body["message"]

        saved = yaml.safe_load(config_path.read_text())
        assert saved["devices"][-1] == {"name": "laptop", "mac": "DE:AD:BE:EF:00:01"}
        assert saved["settings"]["port"] == 9

    def test_add_duplicate(self, client: TestClient) -> None:
        resp = client.post("/api/devices", json={"name": "nas", "mac": "AA:BB:CC:DD:EE:00"})
        assert resp.status_code == 409
        assert "already exists" in resp.json()["error"]

    def test_add_invalid_mac(self, client: TestClient) -> None:
        resp = client.post("/api/devices", json={"name": "x", "mac": "AA:BB"})
        assert resp.status_code == 400
        assert "Invalid MAC" in resp.json()["error"]
        assert client.get("/api/devices").json()["count"] == 2

    def test_add_empty_name(self, client: TestClient) -> None:
        resp = client.post("/api/devices", json={"name": "", "mac": "AA:BB:CC:DD:EE:00"})
        assert resp.status_code == 400

    def test_add_missing_mac_is_validation_error(self, client: TestClient) -> None:
        resp = client.post("/api/devices", json={"name": "x"})
        assert resp.status_code == 422


class TestUpdateDevice:
    def test_partial_update(self, client: TestClient) -> None:
        resp = client.put("/api/devices/nas", json={"broadcast": "192.168.1.255"})
        assert resp.status_code == 200
        device = client.get("/api/devices/nas").json()
        assert device["broadcast"] == "192.168.1.255"
        assert device["ip"] == "192.168.1.10"

    def test_rename(self, client: TestClient) -> None:
        resp = client.put("/api/devices/nas", json={"name": "storage"})
        assert resp.status_code == 200
        assert "storage" in resp.json()["message"]
        assert client.get("/api/devices/nas").status_code == 404
        names = [d["name"] for d in client.get("/api/devices").json()["devices"]]
        assert names == ["storage", "desktop"]

    def test_update_unknown(self, client: TestClient) -> None:
        resp = client.put("/api/devices/Z", json={"ip": "1.2.3.4"})
        assert resp.status_code == 404

    def test_update_rename_collision(self, client: TestClient) -> None:
        resp = client.put("/api/devices/nas", json={"name": "desktop"})
        assert resp.status_code == 409

    def test_update_invalid_mac(self, client: TestClient) -> None:
        resp = client.put("/api/devices/nas", json={"mac": "xx"})
        assert resp.status_code == 400

    def test_update_unknown_field(self, client: TestClient) -> None:
        resp = client.put("/api/devices/nas", json={"colour": "red"})
        assert resp.status_code == 422


class TestDeleteDevice:
    def test_delete_then_get(self, client: TestClient) -> None:
        resp = client.delete("/api/devices/nas")
        assert resp.status_code == 200
        assert "nas" in resp.json()["message"]
        assert client.get("/api/devices/nas").status_code == 404

    def test_repeated_delete(self, client: TestClient) -> None:
        client.delete("/api/devices/nas")
        for _ in range(2):
            resp = client.delete("/api/devices/nas")
            assert resp.status_code == 404
        assert client.get("/api/devices").json()["count"] == 1


class TestWakeEndpoint:
    def test_wake_by_name(self, client: TestClient, mock_socket: MagicMock) -> None:
        resp = client.get("/api/wake", params={"device": "nas"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["device"] == "nas"
        assert data["mac"] == "AA:BB:CC:DD:EE:FF"
        # No per-device broadcast: falls back to the configured default.
        assert _sendto(mock_socket).call_args.args[1] == ("192.168.1.255", 9)

    def test_wake_by_mac(self, client: TestClient, mock_socket: MagicMock) -> None:
        resp = client.get(
            "/api/wake", params={"mac": "00:11:22:33:44:55", "broadcast": "10.1.1.255"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["device"] == ""
        packet, address = _sendto(mock_socket).call_args.args
        assert packet == b"\xff" * 6 + bytes.fromhex("001122334455") * 16
        assert address == ("10.1.1.255", 9)

    def test_wake_unknown_device(self, client: TestClient, mock_socket: MagicMock) -> None:
        resp = client.get("/api/wake", params={"device": "ghost"})
        assert resp.status_code == 404
        mock_socket.assert_not_called()

    def test_wake_invalid_mac(self, client: TestClient, mock_socket: MagicMock) -> None:
        resp = client.get("/api/wake", params={"mac": "nope"})
        assert resp.status_code == 400
        mock_socket.assert_not_called()

    def test_wake_without_target(self, client: TestClient) -> None:
        resp = client.get("/api/wake")
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_wake_transport_failure(self, client: TestClient, mock_socket: MagicMock) -> None:
        _sendto(mock_socket).side_effect = OSError("Network is unreachable")
        resp = client.get("/api/wake", params={"device": "nas"})
        assert resp.status_code == 200
        assert resp.json()["success"] is False
        assert "Network is unreachable" in resp.json()["message"]


class TestWakeBatchEndpoints:
    def test_wake_all(self, client: TestClient, mock_socket: MagicMock) -> None:
        resp = client.post("/api/wake-all")
        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"] == {"total": 2, "successful": 2, "failed": 0}
        assert [r["device"] for r in data["results"]] == ["nas", "desktop"]
        assert "notFound" not in data

    def test_wake_all_partial_failure(self, client: TestClient, mock_socket: MagicMock) -> None:
        client.post(
            "/api/devices",
            json={"name": "broken", "mac": "AA:AA:AA:AA:AA:AA", "broadcast": BAD_BROADCAST},
        )

        def _sendto_impl(packet: bytes, address: tuple[str, int]) -> int:
            if address[0] == BAD_BROADCAST:
                raise socket.gaierror("Name or service not known")
            return len(packet)

        _sendto(mock_socket).side_effect = _sendto_impl

        data = client.post("/api/wake-all").json()

        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}
        assert [r["device"] for r in data["results"]] == ["nas", "desktop", "broken"]
        assert data["results"][2]["success"] is False

    def test_wake_multiple(self, client: TestClient, mock_socket: MagicMock) -> None:
        resp = client.post("/api/wake-multiple", json={"devices": ["desktop", "nas", "ghost"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["notFound"] == ["ghost"]
        assert data["summary"]["total"] == 2
        assert [r["device"] for r in data["results"]] == ["desktop", "nas"]

    def test_wake_multiple_empty_list(self, client: TestClient) -> None:
        resp = client.post("/api/wake-multiple", json={"devices": []})
        assert resp.status_code == 400


class TestCors:
    def test_default_origin_allowed(self, client: TestClient) -> None:
        resp = client.get("/api/devices", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestMissingConfig:
    def test_starts_empty_and_persists_on_add(self, tmp_path: Path) -> None:
        from mezame.api.routes import create_app

        p = tmp_path / "sub" / "config.yaml"
        client = TestClient(create_app(config_path=str(p)))

        assert client.get("/api/devices").json() == {"devices": [], "count": 0}
        client.post("/api/devices", json={"name": "nas", "mac": "AA:BB:CC:DD:EE:FF"})
        assert yaml.safe_load(p.read_text())["devices"][0]["name"] == "nas"


class TestHandEditedConfig:
    def test_numeric_broadcast_does_not_break_wake_all(
        self, tmp_path: Path, mock_socket: MagicMock
    ) -> None:
        from mezame.api.routes import create_app

        p = tmp_path / "config.yaml"
        p.write_text(
            "devices:\n"
            "  - name: A\n    mac: aa-bb-cc-dd-ee-01\n    broadcast: 127.0.0.1\n"
            "  - name: B\n    mac: AA:BB:CC:DD:EE:02\n    broadcast: 10\n"
        )
        client = TestClient(create_app(config_path=str(p)))

        resp = client.post("/api/wake-all")

        assert resp.status_code == 200
        data = resp.json()
        assert [r["device"] for r in data["results"]] == ["A", "B"]
        assert data["results"][0]["mac"] == "AA:BB:CC:DD:EE:01"
        assert data["summary"]["total"] == 2
        assert client.get("/api/devices/A").json()["mac"] == "AA:BB:CC:DD:EE:01"

    @pytest.mark.parametrize("text", ["- just\n- a list\n", "settings: 5\n"])
    def test_malformed_file_raises_config_error(self, tmp_path: Path, text: str) -> None:
        from mezame.api.routes import create_app
        from mezame.config.loader import ConfigError

        p = tmp_path / "config.yaml"
        p.write_text(text)
        with pytest.raises(ConfigError):
            create_app(config_path=str(p))


class TestStartupLogging:
    def test_missing_config_warning_before_load(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        from mezame.api.routes import create_app

        with caplog.at_level("DEBUG"):
            create_app(config_path=str(tmp_path / "missing.yaml"))

        messages = [r.getMessage() for r in caplog.records]
        warning = next(i for i, m in enumerate(messages) if "Config not found" in m)
        loaded = next(i for i, m in enumerate(messages) if "Registry loaded" in m)
        assert warning < loaded
