from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from appconfig import APP_NAME, APP_VERSION, get_settings
from auth import IdentityError, IdentityProviderUnavailable, IdentityVerifier, parse_bearer
from db import get_summary, init_db, list_summaries, save_summary
from llm import SummaryProviderError
from logging_config import setup_logging
from ratelimit import RateLimiter, client_key
from summarizer import summarize_text

logger = logging.getLogger(__name__)

app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)


class BodySizeLimitMiddleware:
    """
    Reject request bodies over MAX_BODY_BYTES with 413.
    Declared lengths are checked up front; bodies without Content-Length (chunked)
    are buffered while counting and then replayed to the app.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = get_settings().max_body_bytes
        too_large = JSONResponse(status_code=413, content={"detail": "Request body too large."})

        length = Headers(scope=scope).get("content-length")
        if length is not None:
            if length.isdigit() and int(length) > limit:
                await too_large(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        chunks = []
        size = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > limit:
                await too_large(scope, receive, send)
                return
            chunks.append(chunk)
            if not message.get("more_body", False):
                break

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": b"".join(chunks), "more_body": False}
            return await receive()

        await self.app(scope, replay, send)


app.add_middleware(BodySizeLimitMiddleware)


# CORS: the mobile client and test tools call from anywhere
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


class SummarizeRequest(BaseModel):
    text: Optional[str] = None
    model: Optional[str] = None


@app.on_event("startup")
def _startup() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    init_db()

    app.state.rate_limiter = RateLimiter(settings.rate_limit, settings.rate_limit_window_seconds)
    app.state.identity_verifier = (
        IdentityVerifier(
            settings.auth_user_url,
            api_key=settings.auth_api_key.get_secret_value() if settings.auth_api_key else None,
            timeout=settings.auth_timeout,
        )
        if settings.auth_user_url
        else None
    )
    # None: built from settings on each request
    app.state.summary_provider = None


# ---- Identity and quota ----

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def current_user(request: Request, authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """User id for the bearer token, or None for anonymous callers when auth is optional."""
    settings = get_settings()

    try:
        token = parse_bearer(authorization)
    except IdentityError as e:
        if settings.require_auth:
            raise _unauthorized(str(e))
        token = None

    if token is None:
        if settings.require_auth:
            raise _unauthorized("Missing bearer token.")
        return None

    verifier: Optional[IdentityVerifier] = request.app.state.identity_verifier
    if verifier is None:
        if settings.require_auth:
            raise HTTPException(status_code=503, detail="Identity provider not configured.")
        return None

    try:
        return verifier.verify(token)
    except IdentityProviderUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except IdentityError as e:
        raise _unauthorized(str(e))


def enforce_quota(request: Request, user_id: Optional[str] = Depends(current_user)) -> Optional[str]:
    limiter: RateLimiter = request.app.state.rate_limiter
    if not limiter.hit(client_key(request, user_id)):
        raise HTTPException(status_code=429, detail="Too many requests")
    return user_id


def _record_usage(user_id: Optional[str], text: str, result: Dict[str, Any]) -> Optional[str]:
    try:
        return save_summary(
            user_id=user_id,
            original_text=text,
            summary=result["summary"],
            source=result["source"],
            model=result["model"],
            cost_estimate=result["cost_estimate"],
        )
    except sqlite3.Error:
        logger.exception("could not record summary usage")
        return None


# ---- Routes ----

@app.get("/", response_class=PlainTextResponse)
def root():
    return f"{APP_NAME} backend running"


@app.get("/health")
def health():
    return {"status": "ok", "app": APP_NAME, "version": APP_VERSION}


@app.post("/api/summarize")
def summarize(
    request: Request,
    req: Optional[SummarizeRequest] = Body(default=None),
    user_id: Optional[str] = Depends(enforce_quota),
):
    """
    Summarize free text (usually OCR output from the app).
    Uses the external model when configured, the extractive fallback otherwise.
    """
    raw_text = req.text if req else None
    logger.info("incoming summarize request, length=%d", len(raw_text or ""))
    text = (raw_text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Missing text")

    try:
        result = summarize_text(text, req.model if req else None, provider=request.app.state.summary_provider)
    except SummaryProviderError as e:
        logger.error("external summary failed: %s (status=%s)", e, e.status_code)
        raise HTTPException(status_code=500, detail={"error": "OpenAI error", "details": e.details or str(e)})
    except Exception as e:
        logger.exception("unexpected summarize failure")
        raise HTTPException(status_code=500, detail={"error": str(e)})

    return {"id": _record_usage(user_id, text, result), **result}


# ---- History endpoints ----

@app.get("/api/summaries")
def summaries(limit: int = Query(default=50, ge=1, le=500), user_id: Optional[str] = Depends(current_user)):
    results = list_summaries(user_id, limit=limit)
    return {"count": len(results), "results": results}


@app.get("/api/summaries/{summary_id}")
def summary_detail(summary_id: str, user_id: Optional[str] = Depends(current_user)):
    data = get_summary(summary_id)
    if not data or data["user_id"] != user_id:
        raise HTTPException(status_code=404, detail="Summary not found.")
    return data
