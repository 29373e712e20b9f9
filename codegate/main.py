import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from codegate import config, event_log, llm_client, orchestrator
from codegate.credentials import CredentialPool, load_pool
from codegate.errors import ConfigError, MissingQueryError

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

CONFIG_ERROR_MESSAGE = "Server config error: No API keys."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"

event_log.setup()

# Built once per process; None means no keys were configured
_pool: Optional[CredentialPool] = load_pool()
if _pool is None:
    event_log.error("SYSTEM", "CRITICAL: No GEMINI_API_KEYS found in environment variables.")
    log.error("CRITICAL: No GEMINI_API_KEYS found in environment variables.")
else:
    log.info("credentials: loaded %d key(s), model=%s", _pool.size, config.GEMINI_MODEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    event_log.setup()
    try:
        yield
    finally:
        event_log.shutdown()


app = FastAPI(title="codegate", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOW_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "?"),
            dur_ms,
        )


class CodeResponse(BaseModel):
    code: str = Field(..., description="Code extracted from the model output")


def _error_response(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": True, "message": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


@app.get("/", response_model=CodeResponse)
def complete(request: Request, query: Optional[str] = None):
    """
    Forward `query` to the model and return {"code": ...}.
    Each call is independent: a new session is started on the next key.
    """
    event_log.info("REQUEST", {"query": query, "ip": request.client.host if request.client else None})
    try:
        if not query:
            raise MissingQueryError()
        pool = _pool
        if pool is None:
            raise ConfigError(CONFIG_ERROR_MESSAGE)
        result = orchestrator.handle(query, pool, session_factory=llm_client.create_session)
    except MissingQueryError as exc:
        event_log.warn("BAD_REQUEST", {"message": exc.message})
        return _error_response(400, exc.message)
    except ConfigError:
        event_log.error("CONFIG_ERROR", {"message": CONFIG_ERROR_MESSAGE})
        return _error_response(500, CONFIG_ERROR_MESSAGE)
    except Exception as exc:
        event_log.error("CRITICAL_SERVER_ERROR", {"error": str(exc), "stack": traceback.format_exc()})
        return _error_response(500, INTERNAL_ERROR_MESSAGE, details=str(exc))
    return CodeResponse(**result)


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok", "keys": _pool.size if _pool is not None else 0}
