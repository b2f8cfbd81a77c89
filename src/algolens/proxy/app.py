from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ProxyConfig
from .errors import METHOD_NOT_ALLOWED_TEXT, ProxyError, UnexpectedFailure
from .forwarder import ImageAnalysisForwarder
from .logging_utils import JsonlLogger

logger = logging.getLogger(__name__)

ANALYZE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

_cfg = ProxyConfig.load()
_forwarder = ImageAnalysisForwarder(_cfg, api_key=_cfg.openai_api_key)
_request_log: JsonlLogger | None = (
    JsonlLogger(_cfg.request_log_path, _cfg.max_log_bytes)
    if _cfg.request_log_path
    else None
)

app = FastAPI(title="algolens image analysis proxy", version="0.1")


@app.exception_handler(StarletteHTTPException)
async def _method_not_allowed_as_text(req: Request, exc: StarletteHTTPException):
    # Verbs outside ANALYZE_METHODS are rejected by the router before any route runs.
    if exc.status_code == 405:
        return PlainTextResponse(
            METHOD_NOT_ALLOWED_TEXT, status_code=405, headers=exc.headers
        )
    return await http_exception_handler(req, exc)


def _record(outcome: str, status: int, started_at: float, **extra: Any) -> None:
    duration_ms = (time.time() - started_at) * 1000
    logger.info("[app] analyze %s status=%s (%.0f ms)", outcome, status, duration_ms)
    if _request_log is None:
        return
    record = {
        "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime()),
        "outcome": outcome,
        "status": status,
        "duration_ms": round(duration_ms, 1),
    }
    record.update(extra)
    _request_log.log(record)


@app.api_route("/api/analyze", methods=ANALYZE_METHODS)
@app.api_route("/", methods=ANALYZE_METHODS, include_in_schema=False)
async def analyze(req: Request):
    started_at = time.time()
    if req.method != "POST":
        _record("method_not_allowed", 405, started_at, method=req.method)
        return PlainTextResponse(METHOD_NOT_ALLOWED_TEXT, status_code=405)

    try:
        body = await req.json()
        content = await _forwarder.analyze(body)
    except ProxyError as exc:
        failure = exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("[app] Unexpected failure while handling analyze request")
        failure = UnexpectedFailure.from_exception(exc)
    else:
        _record("ok", 200, started_at, response_bytes=len(content))
        return Response(content=content, status_code=200, media_type="application/json")

    _record(failure.kind, failure.status_code, started_at)
    return JSONResponse(status_code=failure.status_code, content=failure.payload)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("startup")
async def _startup():  # pragma: no cover
    if not _cfg.openai_api_key:
        logger.warning(
            "[app] OPENAI_API_KEY is not set; upstream calls will fail authentication."
        )
    logger.info("[app] Forwarding to %s with model %s", _cfg.upstream_url, _cfg.model)


@app.on_event("shutdown")
async def _shutdown():  # pragma: no cover
    await _forwarder.aclose()


def main():  # pragma: no cover
    import uvicorn

    uvicorn.run(app, host=_cfg.host, port=_cfg.port)


if __name__ == "__main__":  # pragma: no cover
    main()
