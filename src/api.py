"""
src/api.py

HTTP entrypoint: POST /api/chat {"input": "..."} -> {"content": [ContentBlock, ...]}.
Every failure is answered as {"error": "..."} with a non-2xx status.
"""


import logging
import os
from functools import lru_cache
from typing import Annotated, List

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import configure_logging
from orchestrator.errors import (
    AssistantError,
    ModelInferenceFailure,
    SchemaIntrospectionFailure,
    ToolUseLimitExceeded,
)
from orchestrator.models import ContentBlock
from orchestrator.router import Orchestrator, build_orchestrator


logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ModelInferenceFailure: 502,
    ToolUseLimitExceeded: 500,
    SchemaIntrospectionFailure: 500,
}


class ChatRequest(BaseModel):

    input: str


class ChatResponse(BaseModel):

    content: List[ContentBlock]


# One orchestrator per process; each request still gets its own transcript and schema read
@lru_cache(maxsize=1)
def get_orchestrator() -> Orchestrator:

    return build_orchestrator()


orchestrator_dep = Annotated[Orchestrator, Depends(get_orchestrator)]

app = FastAPI(title="Grand Old RAG API")


def _error(status_code: int, message: str, headers=None) -> JSONResponse:

    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Covers 405 for any method other than POST on /api/chat
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Request body must be a JSON object with a string 'input' field")


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError):
    status = next((code for kind, code in STATUS_BY_ERROR.items() if isinstance(exc, kind)), 500)
    logger.error("Request failed (%s): %s", exc.kind, exc.message)
    return _error(status, f"Error processing your request: {exc.message}")


@app.exception_handler(FileNotFoundError)
async def missing_database_handler(request: Request, exc: FileNotFoundError):
    logger.error("Database unavailable: %s", exc)
    return _error(500, f"Error processing your request: {exc}")


@app.get("/")
async def root():
    return {"message": "Grand Old RAG: ask questions about the database"}


@app.post("/api/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, orchestrator: orchestrator_dep):
    """Answer one question, querying the database as often as the model needs."""
    if not body.input.strip():
        raise HTTPException(status_code=400, detail="input must be a non-empty string")

    result = await orchestrator.run(body.input)

    logger.info("Returning final response with %d content blocks", len(result.content))
    return {"content": result.content}


def main() -> None:

    import uvicorn

    configure_logging()
    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":

    main()
