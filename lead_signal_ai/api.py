"""
HTTP boundary for lead generation.

Endpoints:
  POST    /generate-leads           ranked leads as JSON (or SSE when body has "stream": true)
  POST    /generate-leads/stream    progress / lead / domain events over SSE
  POST    /generate-leads/csv       ranked leads as CSV
  OPTIONS /generate-leads[...]      CORS preflight
  GET     /health                   health check

Run:
  uvicorn lead_signal_ai.api:app --port 8000
"""

import asyncio
import json
from contextlib import aclosing
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from lead_signal_ai.agents.lead_agent import build_orchestrator
from lead_signal_ai.agents.orchestrator import LeadOrchestrator
from lead_signal_ai.config import PipelineConfig
from lead_signal_ai.errors import ValidationError, LeadPipelineError
from lead_signal_ai.schemas.events import DONE_MARKER, ErrorEvent
from lead_signal_ai.schemas.lead import Lead
from lead_signal_ai.schemas.request import LeadRequest
from lead_signal_ai.utils.csv_export import export_leads_csv
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    **CORS_HEADERS,
}

DISCONNECT_POLL_SECONDS = 0.5
# Status for a batch run abandoned by the client (nginx convention)
CLIENT_CLOSED_REQUEST = 499

LEAD_ROUTES = ("/generate-leads", "/generate-leads/stream", "/generate-leads/csv")
OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]

app = FastAPI(title="Lead Signal AI")


def get_pipeline_config() -> PipelineConfig:
    """Snapshot of credentials and tunables; replaced in tests."""
    return PipelineConfig.from_env()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


async def _parse_request(request: Request) -> LeadRequest:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be valid JSON") from e
    return LeadRequest.from_payload(payload)


async def _sse(orchestrator: Optional[LeadOrchestrator], startup_error: Optional[str] = None) -> AsyncIterator[str]:
    """Serialize events; every stream that is not cancelled ends with the [DONE] marker."""
    if startup_error is not None:
        yield ErrorEvent(message=startup_error).to_sse()
    else:
        try:
            # aclosing: a client disconnect cancels the run's in-flight calls
            async with aclosing(orchestrator.stream()) as events:
                async for event in events:
                    yield event.to_sse()
        except Exception as e:
            logger.exception("Event stream crashed")
            yield ErrorEvent(message=f"Internal error: {type(e).__name__}").to_sse()
    yield DONE_MARKER


def _stream_response(lead_request: LeadRequest) -> StreamingResponse:
    orchestrator: Optional[LeadOrchestrator] = None
    startup_error: Optional[str] = None
    try:
        orchestrator = build_orchestrator(lead_request, get_pipeline_config())
    except LeadPipelineError as e:
        logger.error("Cannot start stream: %s", e)
        startup_error = str(e)
    return StreamingResponse(
        _sse(orchestrator, startup_error),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def run_until_disconnected(
    request: Request,
    orchestrator: LeadOrchestrator,
    poll_interval: float = DISCONNECT_POLL_SECONDS,
) -> Optional[List[Lead]]:
    """
    Run a batch orchestrator while watching the client connection.
    Returns None when the client went away; the run and its provider calls are cancelled.
    """
    task = asyncio.create_task(orchestrator.run())
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("Client disconnected; cancelling batch run")
                return None
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


async def _run_batch(request: Request, lead_request: LeadRequest) -> Optional[List[Lead]]:
    orchestrator = build_orchestrator(lead_request, get_pipeline_config())
    return await run_until_disconnected(request, orchestrator)


def _internal_error(e: Exception) -> JSONResponse:
    return _error(f"Internal error: {type(e).__name__}", 500)


@app.options("/generate-leads")
@app.options("/generate-leads/stream")
@app.options("/generate-leads/csv")
async def preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@app.api_route("/generate-leads", methods=OTHER_METHODS)
@app.api_route("/generate-leads/stream", methods=OTHER_METHODS)
@app.api_route("/generate-leads/csv", methods=OTHER_METHODS)
async def method_not_allowed() -> JSONResponse:
    return _error("Method not allowed", 405)


@app.post("/generate-leads")
async def generate_leads(request: Request) -> Response:
    try:
        lead_request = await _parse_request(request)
    except ValidationError as e:
        return _error(str(e), 400)
    if lead_request.stream:
        return _stream_response(lead_request)

    try:
        leads = await _run_batch(request, lead_request)
    except ValidationError as e:
        return _error(str(e), 400)
    except LeadPipelineError as e:
        logger.error("Lead generation failed: %s", e)
        return _error(str(e), 500)
    except Exception as e:
        logger.exception("Lead generation crashed")
        return _internal_error(e)
    if leads is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST, headers=CORS_HEADERS)
    return JSONResponse({"leads": [lead.model_dump() for lead in leads]}, headers=CORS_HEADERS)


@app.post("/generate-leads/stream")
async def generate_leads_stream(request: Request) -> Response:
    try:
        lead_request = await _parse_request(request)
    except ValidationError as e:
        return _error(str(e), 400)
    return _stream_response(lead_request)


@app.post("/generate-leads/csv")
async def generate_leads_csv(request: Request) -> Response:
    try:
        lead_request = await _parse_request(request)
        leads = await _run_batch(request, lead_request)
    except ValidationError as e:
        return _error(str(e), 400)
    except LeadPipelineError as e:
        logger.error("Lead generation failed: %s", e)
        return _error(str(e), 500)
    except Exception as e:
        logger.exception("CSV lead generation crashed")
        return _internal_error(e)
    if leads is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST, headers=CORS_HEADERS)
    return Response(
        export_leads_csv(leads),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"', **CORS_HEADERS},
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
