import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.schemas.resume import ParsedResume
from app.services.analysis_service import AnalysisError, extract_and_parse, run_analysis

logger = logging.getLogger(__name__)

router = APIRouter()


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


def _status_for_stage(exc: AnalysisError) -> int:
    if exc.stage == "extract":
        return status.HTTP_400_BAD_REQUEST
    if exc.code == "llm_disabled":
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_502_BAD_GATEWAY


async def _read_resume_upload(file: UploadFile) -> tuple[bytes, str]:
    filename = file.filename or "resume.pdf"
    if not filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only PDF files are supported")

    max_bytes = settings.max_upload_bytes
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    content = b"".join(chunks)
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")
    return content, filename


@router.post("/analyze/stream")
@rate_limit(settings.analyze_rate_limit)
async def analyze_stream(request: Request, resume: UploadFile = File(...)):
    content, filename = await _read_resume_upload(resume)

    async def event_stream():
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def push_progress(event: dict[str, Any]) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, {"kind": "progress", "payload": event})

        def worker() -> None:
            try:
                result = run_analysis(content, filename, progress_callback=push_progress)
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {"kind": "result", "payload": result.model_dump(mode="json")},
                )
            except AnalysisError as exc:
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {
                        "kind": "error",
                        "payload": {
                            "message": exc.message,
                            "stage": exc.stage,
                            "code": exc.code,
                            "status": _status_for_stage(exc),
                        },
                    },
                )
            except Exception as exc:  # pragma: no cover - guard rail
                logger.exception("analysis_stream_failed filename=%r", filename)
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {
                        "kind": "error",
                        "payload": {"message": str(exc) or "Analysis failed", "status": status.HTTP_500_INTERNAL_SERVER_ERROR},
                    },
                )
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, {"kind": "done", "payload": {}})

        task = asyncio.create_task(asyncio.to_thread(worker))

        try:
            yield _sse_event("connected", {"ok": True})
            while True:
                if await request.is_disconnected():
                    logger.info("analysis_stream_client_disconnected filename=%r", filename)
                    break
                event = await queue.get()
                kind = event.get("kind")
                if kind == "done":
                    break
                if kind in {"progress", "result", "error"}:
                    yield _sse_event(kind, event.get("payload", {}))
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/resume/parse", response_model=ParsedResume)
@rate_limit(settings.analyze_rate_limit)
async def resume_parse(request: Request, resume: UploadFile = File(...)):
    _ = request
    content, filename = await _read_resume_upload(resume)
    try:
        return await asyncio.to_thread(extract_and_parse, content, filename)
    except AnalysisError as exc:
        raise HTTPException(status_code=_status_for_stage(exc), detail=exc.message) from exc
