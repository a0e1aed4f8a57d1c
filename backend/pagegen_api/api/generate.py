"""POST /api/generate endpoint"""

import asyncio
import logging
import uuid
from typing import Set
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pagegen_api.core.config import settings
from pagegen_api.core.orchestrator import orchestrator
from pagegen_api.core.progress_channel import ProgressChannel
from pagegen_api.models.errors import ApplicationError, ErrorCode
from pagegen_api.models.schemas import ErrorResponse, GenerateRequest

router = APIRouter()
logger = logging.getLogger(__name__)

# Runs in flight. Holding the task here keeps it alive after the client
# disconnects, so the page is still stored.
running_tasks: Set[asyncio.Task] = set()

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _read_input(request: Request) -> str:
    """Pull a non-blank `input` string out of the JSON body or raise INVALID_INPUT"""
    try:
        body = await request.json()
    except ValueError:
        body = {}

    input_text = body.get("input") if isinstance(body, dict) else None
    if not isinstance(input_text, str) or not input_text.strip():
        raise ApplicationError(
            code=ErrorCode.INVALID_INPUT,
            message="Missing input",
            hint="Send a JSON body like {\"input\": \"a landing page for a bakery\"}."
        )
    return input_text


@router.post(
    "/generate",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/event-stream": {}}, "description": "Progress event stream"},
        400: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": GenerateRequest.model_json_schema()}},
        }
    },
)
async def generate(request: Request) -> StreamingResponse:
    """
    Generate a landing page from a prompt or screenshot URL.

    The response is a Server-Sent Events stream of `progress` events followed
    by exactly one `complete` or `error` event.
    """
    input_text = await _read_input(request)

    run_id = uuid.uuid4().hex[:8]
    logger.info(f"[GENERATE] Run {run_id} accepted")

    channel = ProgressChannel(delay=settings.progress_delay_seconds, run_id=run_id)
    task = asyncio.create_task(orchestrator.run(input_text, channel))
    running_tasks.add(task)
    task.add_done_callback(running_tasks.discard)

    return StreamingResponse(
        channel.stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
