# pylint: disable=missing-module-docstring,missing-function-docstring

from fastapi.testclient import TestClient

from config import AppConfig
from server.app import create_app


def make_app():
    return create_app(
        AppConfig(
            env="test",
            log_level="INFO",
            enable_json_logs=True,
            recognition_lang="en-US",
            restart_backoff_ms=5,
            processing_delay_ms=10,
            speech_voice=None,
            cors_allow_origins=("http://localhost:3000",),
        )
    )


def test_health() -> None:
    client = TestClient(make_app())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_websocket_session_round_trip() -> None:
    client = TestClient(make_app())

    with client.websocket_connect("/ws") as ws:
        init = ws.receive_json()
        assert init["type"] == "SESSION_INIT"

        ws.send_json({
            "type": "CAPABILITIES",
            "recognition": True,
            "speech_synthesis": True,
            "permissions": True,
            "permission_state": "granted",
        })
        status = ws.receive_json()
        assert status["type"] == "STATUS"
        assert status["microphone_status"] == "idle"

        ws.send_json({"type": "MIC_START"})
        start = ws.receive_json()
        assert start["type"] == "RECOGNITION_START"
        assert start["continuous"] is True
        assert ws.receive_json()["microphone_status"] == "listening"

        ws.send_json({"type": "RECOGNITION_RESULT", "text": "analyze traffic"})
        command = ws.receive_json()
        assert command == {"type": "COMMAND", "token": "analyze-traffic", "params": None}
        speak = ws.receive_json()
        assert speak["type"] == "SPEAK"
        assert speak["text"] == "Analyzing current traffic patterns"
