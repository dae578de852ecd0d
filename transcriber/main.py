import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse

from transcriber.core.config import Settings, settings as default_settings
from transcriber.guardrails.errors import as_http_500
from transcriber.metadata.records import MetadataStore, RecordFormatError, new_record
from transcriber.models.schemas import (
    MediaMetadataRecord,
    TranscriptionStatusResponse,
    UploadedFile,
    UploadResponse,
)
from transcriber.observability.middleware import RequestTimingMiddleware, get_request_id
from transcriber.transcription.discovery import discover_pending
from transcriber.transcription.jobs import JobStore
from transcriber.transcription.media_types import classify, is_transcribable
from transcriber.transcription.pipeline import TranscriptionPipeline
from transcriber.transcription.status import transcription_statuses
from transcriber.transcription.worker import TranscriptionWorker
from transcriber.utils.process import ProcessRunner, run_command

logging.basicConfig(
    level=default_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    runner: ProcessRunner = run_command,
    start_worker: bool = True,
) -> FastAPI:
    """Build the API with its own JobStore, pipeline and worker. On startup: create data dirs, run the discovery scan once, start the worker.
    Why available: Tests build isolated apps on temp directories with fake tool runners; the module-level app uses env settings."""
    cfg = settings or default_settings

    metadata = MetadataStore(cfg.metadata_dir)
    store = JobStore()
    pipeline = TranscriptionPipeline(cfg, metadata, runner=runner)
    worker = TranscriptionWorker(store, pipeline, cfg.transcripts_dir, poll_interval=cfg.poll_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg.ensure_directories()
        discover_pending(store, cfg.media_dir, cfg.transcripts_dir)
        if start_worker:
            worker.start()
        try:
            yield
        finally:
            worker.stop(timeout=cfg.poll_interval_seconds)

    app = FastAPI(title="Media Transcription Queue", lifespan=lifespan)
    app.add_middleware(RequestTimingMiddleware)
    app.state.settings = cfg
    app.state.metadata = metadata
    app.state.jobs = store
    app.state.worker = worker

    # -------------------------
    # Root / health
    # -------------------------

    @app.get("/")
    def root():
        return {"app": "Media Transcription Queue", "docs": "/docs"}

    @app.get("/health")
    def health():
        """Liveness plus queue depth and whether the worker thread is alive."""
        return {"status": "ok", "queued": store.queued_count(), "worker_running": worker.running}

    # -------------------------
    # Upload (enqueues audio/video)
    # -------------------------

    @app.post("/api/upload", response_model=UploadResponse)
    async def upload(request: Request, files: List[UploadFile] = File(...)):
        """Saves each file to the media store, writes its initial metadata record, and enqueues audio/video for transcription.
        Transcription runs later on the worker; its outcome is only visible through /api/transcription/status."""
        if not files:
            raise HTTPException(status_code=400, detail="No files uploaded")

        max_bytes = cfg.max_upload_mb * 1024 * 1024
        results: List[UploadedFile] = []
        for f in files:
            filename = os.path.basename(f.filename or "")
            if not filename or filename in (".", ".."):
                raise HTTPException(status_code=400, detail="Uploaded file has no usable name")
            content = await f.read()
            if len(content) > max_bytes:
                raise HTTPException(
                    status_code=413,
                    detail=f"{filename} exceeds upload limit ({cfg.max_upload_mb} MB).",
                )

            try:
                os.makedirs(cfg.media_dir, exist_ok=True)
                with open(os.path.join(cfg.media_dir, filename), "wb") as out:
                    out.write(content)
                metadata.save(new_record(filename, classify(filename).value))
            except OSError as e:
                raise as_http_500(e, context=f"upload {filename} ({get_request_id(request)})")

            queued = is_transcribable(filename) and store.enqueue(filename)
            results.append(
                UploadedFile(
                    status="success",
                    filename=filename,
                    path="/media/" + filename,
                    metadata="/api/metadata/" + filename,
                    queued=queued,
                )
            )

        return UploadResponse(status="success", files=results, count=len(results))

    # -------------------------
    # Metadata (read)
    # -------------------------

    @app.get("/api/metadata", response_model=List[MediaMetadataRecord])
    def list_metadata():
        return metadata.list_all()

    @app.get("/api/metadata/{filename}", response_model=MediaMetadataRecord)
    def get_metadata(filename: str, request: Request):
        try:
            record = metadata.load(filename)
        except (OSError, RecordFormatError) as e:
            raise as_http_500(e, context=f"read metadata {filename} ({get_request_id(request)})")
        if record is None:
            raise HTTPException(status_code=404, detail="Metadata not found")
        return record

    # -------------------------
    # Media (serve files)
    # -------------------------

    @app.get("/api/media", response_model=List[MediaMetadataRecord])
    def list_media():
        """All media records; same rows as /api/metadata."""
        return metadata.list_all()

    @app.get("/media/{filename}")
    def get_media(filename: str):
        """Serves the stored upload named by a record's `path`."""
        name = os.path.basename(filename)
        path = os.path.join(cfg.media_dir, name)
        if name != filename or not os.path.isfile(path):
            raise HTTPException(status_code=404, detail="Media not found")
        return FileResponse(path)

    # -------------------------
    # Transcription status
    # -------------------------

    @app.get("/api/transcription/status", response_model=List[TranscriptionStatusResponse])
    def transcription_status():
        """One row per known filename (queued, processing, completed, failed). Never blocks on a running transcription."""
        return transcription_statuses(store)

    return app


app = create_app()
