"""API tests: upload enqueues, status reflects worker progress, metadata shows the transcript."""
from pathlib import Path

from fastapi.testclient import TestClient

from conftest import FakeRunner, HELLO_WORLD
from transcriber.main import create_app


def _log(item, title: str, request: dict, response: dict):
    """
    Store logs on the test item so conftest can attach to pytest-html report.
    """
    logs = getattr(item, "_api_logs", [])
    logs.append({"title": title, "request": request, "response": response})
    item._api_logs = logs


def _client(settings, runner):
    app = create_app(settings, runner=runner, start_worker=False)
    return app, TestClient(app)


def _upload(client, request, name, content=b"\x00\x00"):
    resp = client.post("/api/upload", files=[("files", (name, content, "application/octet-stream"))])
    _log(
        request.node,
        f"POST /api/upload ({name})",
        {"method": "POST", "url": "/api/upload", "files": [name]},
        {"status_code": resp.status_code, "json": resp.json()},
    )
    return resp


def test_health(settings, hello_runner):
    app, client = _client(settings, hello_runner)
    with client:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert "x-request-id" in resp.headers


def test_upload_transcribe_and_read_back(settings, hello_runner, request):
    app, client = _client(settings, hello_runner)
    with client:
        resp = _upload(client, request, "clip.mp4")
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["count"] == 1
        assert data["files"][0]["queued"] is True
        assert data["files"][0]["metadata"] == "/api/metadata/clip.mp4"

        status = client.get("/api/transcription/status").json()
        assert [(s["filename"], s["status"]) for s in status] == [("clip.mp4", "queued")]

        assert app.state.worker.run_once() is True

        status = client.get("/api/transcription/status").json()
        _log(
            request.node,
            "GET /api/transcription/status",
            {"method": "GET", "url": "/api/transcription/status"},
            {"status_code": 200, "json": status},
        )
        assert status[0]["status"] == "completed"
        assert status[0].get("error") is None
        assert status[0]["timestamp"]

        record = client.get("/api/metadata/clip.mp4").json()
        assert record["type"] == "video"
        assert record["transcription"] == "hello world "
        assert [t["segment"] for t in record["transcripts"]] == [0, 1]


def test_upload_same_file_twice_enqueues_once(settings, hello_runner, request):
    app, client = _client(settings, hello_runner)
    with client:
        assert _upload(client, request, "memo.mp3").json()["files"][0]["queued"] is True
        assert _upload(client, request, "memo.mp3").json()["files"][0]["queued"] is False
        assert app.state.jobs.queued_count() == 1


def test_photo_upload_not_enqueued(settings, hello_runner, request):
    app, client = _client(settings, hello_runner)
    with client:
        data = _upload(client, request, "beach.jpg").json()
        assert data["files"][0]["queued"] is False
        assert client.get("/api/metadata/beach.jpg").json()["type"] == "photo"
        assert client.get("/api/transcription/status").json() == []


def test_failed_job_visible_in_status(settings, request):
    app, client = _client(settings, FakeRunner(document=HELLO_WORLD, recognizer_rc=1))
    with client:
        _upload(client, request, "clip.mp4")
        app.state.worker.run_once()
        status = client.get("/api/transcription/status").json()
        assert status[0]["status"] == "failed"
        assert status[0]["error"]
        failed = Path(settings.transcripts_dir) / "clip.mp4.failed"
        assert failed.read_text() == status[0]["error"]
        assert not (Path(settings.transcripts_dir) / "clip.mp4.json").exists()


def test_startup_discovery_enqueues_untranscribed(settings, hello_runner):
    media = Path(settings.media_dir)
    (media / "old.wav").write_bytes(b"x")
    (media / "done.wav").write_bytes(b"x")
    (Path(settings.transcripts_dir) / "done.wav.json").write_text("[]")
    app, client = _client(settings, hello_runner)
    with client:
        status = client.get("/api/transcription/status").json()
        assert [s["filename"] for s in status] == ["old.wav"]


def test_metadata_not_found(settings, hello_runner):
    app, client = _client(settings, hello_runner)
    with client:
        assert client.get("/api/metadata/nothing.mp3").status_code == 404


def test_list_metadata(settings, hello_runner, request):
    app, client = _client(settings, hello_runner)
    with client:
        _upload(client, request, "b.mp3")
        _upload(client, request, "a.jpg")
        names = [r["filename"] for r in client.get("/api/metadata").json()]
        assert names == ["a.jpg", "b.mp3"]


def test_upload_too_large(settings, hello_runner):
    small = settings.model_copy(update={"max_upload_mb": 1})
    app, client = _client(small, hello_runner)
    with client:
        resp = client.post(
            "/api/upload",
            files=[("files", ("big.mp3", b"\x00" * (2 * 1024 * 1024), "audio/mpeg"))],
        )
        assert resp.status_code == 413
        assert app.state.jobs.queued_count() == 0


def test_media_file_served_at_record_path(settings, hello_runner, request):
    app, client = _client(settings, hello_runner)
    with client:
        data = _upload(client, request, "memo.mp3", content=b"ID3-audio-bytes").json()
        path = data["files"][0]["path"]
        assert path == "/media/memo.mp3"
        assert client.get("/api/metadata/memo.mp3").json()["path"] == path

        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.content == b"ID3-audio-bytes"


def test_media_file_missing_is_404(settings, hello_runner):
    app, client = _client(settings, hello_runner)
    with client:
        assert client.get("/media/nothing.mp3").status_code == 404
        assert client.get("/media/..%2Fmetadata").status_code == 404


def test_list_media_matches_metadata(settings, hello_runner, request):
    app, client = _client(settings, hello_runner)
    with client:
        _upload(client, request, "b.mp4")
        _upload(client, request, "a.wav")
        media = client.get("/api/media").json()
        assert [r["filename"] for r in media] == ["a.wav", "b.mp4"]
        assert media == client.get("/api/metadata").json()
