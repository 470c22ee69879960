"""
FastAPI Web Application - Review Router API
===========================================

JSON API behind the customer landing page, the admin page and the review
generator pages. Every route is served at the root and under /api, answers
OPTIONS preflights, and returns errors as {"message": ...}.
"""

import json
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from review_router.application import ConfigService, GenerationService, TierDistributor
from review_router.domain import MalformedPayloadError, RouterError, ValidationError
from review_router.infrastructure.config import get_settings
from review_router.infrastructure.persistence import BlobStore, ConfigRepository, create_blob_store

logging.basicConfig(
    level=get_settings().server.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ── Globals ────────────────────────────────────────────────────────
# Serializes writes of the router document within this process
CONFIG_LOCK = threading.Lock()

ROUTE_METHODS = {
    "config": "GET,POST,OPTIONS",
    "distribute": "POST,OPTIONS",
    "generate": "POST,OPTIONS",
    "health": "GET,OPTIONS",
}
DEFAULT_METHODS = "GET,POST,OPTIONS"


# ── Request Models ─────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    """Body of POST /generate. Unknown fields are ignored, bad types become None."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    prompt_key: Optional[str] = Field(default=None, alias="promptKey")
    tier: Optional[str] = None

    @field_validator("prompt_key", "tier", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip() or None


# ── Lifespan ───────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    for issue in settings.validate():
        logger.warning(issue)
    app.state.store = create_blob_store(settings.store)
    logger.info("Blob store ready")
    yield


app = FastAPI(
    title="Review Router",
    description="Tier-based review form distribution and review drafting",
    lifespan=lifespan
)
router = APIRouter()


# ── Helpers ────────────────────────────────────────────────────────

def cors_headers(request: Request) -> dict:
    route_name = request.url.path.rstrip("/").rsplit("/", 1)[-1]
    return {
        "Access-Control-Allow-Origin": get_settings().server.cors_allow_origin,
        "Access-Control-Allow-Methods": ROUTE_METHODS.get(route_name, DEFAULT_METHODS),
        "Access-Control-Allow-Headers": "Content-Type",
    }


def json_response(request: Request, status_code: int, payload: dict, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=payload,
        headers={**(headers or {}), **cors_headers(request)}
    )


def _decode(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError as e:
        raise MalformedPayloadError() from e


async def json_body(request: Request) -> Any:
    """Decoded JSON body; empty or malformed bodies are rejected."""
    body = await request.body()
    if not body.strip():
        raise ValidationError("リクエストボディが空です。")
    return _decode(body)


async def optional_json_body(request: Request) -> Any:
    """Decoded JSON body, or an empty object when no body was sent."""
    body = await request.body()
    if not body.strip():
        return {}
    return _decode(body)


# ── Dependencies ───────────────────────────────────────────────────

def get_blob_store(request: Request) -> BlobStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = create_blob_store(get_settings().store)
        request.app.state.store = store
    return store


def get_repository(store: BlobStore = Depends(get_blob_store)) -> ConfigRepository:
    return ConfigRepository(store)


def get_generation_service(repository: ConfigRepository = Depends(get_repository)) -> GenerationService:
    return GenerationService(repository, sample_limit=get_settings().generation.sample_limit)


# ── Error Handlers ─────────────────────────────────────────────────

@app.exception_handler(RouterError)
async def router_error_handler(request: Request, exc: RouterError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return json_response(request, exc.status_code, {"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        message = "許可されていないHTTPメソッドです。"
    else:
        message = str(exc.detail)
    # keeps Allow on 405
    return json_response(request, exc.status_code, {"message": message}, headers=exc.headers)


# ── Preflight ──────────────────────────────────────────────────────

def preflight(request: Request):
    return Response(status_code=204, headers=cors_headers(request))


for _route_name in ROUTE_METHODS:
    router.add_api_route(f"/{_route_name}", preflight, methods=["OPTIONS"], include_in_schema=False)


# ── Config ─────────────────────────────────────────────────────────

@router.get("/config")
def read_config(request: Request, repository: ConfigRepository = Depends(get_repository)):
    """Full configuration merged over defaults."""
    config = ConfigService(repository).get_config()
    return json_response(request, 200, config.to_dict())


@router.post("/config")
def save_config(
    request: Request,
    payload: Any = Depends(json_body),
    repository: ConfigRepository = Depends(get_repository),
):
    """Replace the stored configuration with an admin submission."""
    config = ConfigService(repository, lock=CONFIG_LOCK).save_config(payload)
    return json_response(request, 200, config.to_dict())


# ── Distribution ───────────────────────────────────────────────────

@router.post("/distribute")
def distribute(
    request: Request,
    payload: Any = Depends(json_body),
    repository: ConfigRepository = Depends(get_repository),
):
    """Next review form link for the requested tier."""
    tier = payload.get("tier") if isinstance(payload, dict) else None
    distributor = TierDistributor(repository, lock=CONFIG_LOCK)
    result = distributor.distribute(tier or "")
    return json_response(request, 200, result.to_dict())


# ── Generation ─────────────────────────────────────────────────────

@router.post("/generate")
def generate(
    request: Request,
    model: Optional[str] = None,
    payload: Any = Depends(optional_json_body),
    service: GenerationService = Depends(get_generation_service),
):
    """Draft review text from the GAS samples and the configured prompt."""
    body = GenerateRequest.model_validate(payload if isinstance(payload, dict) else {})
    result = service.generate(prompt_key=body.prompt_key, tier=body.tier, model=model)
    return json_response(request, 200, result.to_dict())


# ── Health ─────────────────────────────────────────────────────────

@router.get("/health")
def health(request: Request):
    return json_response(request, 200, {"status": "ok"})


app.include_router(router)
app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
