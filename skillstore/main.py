"""FastAPI application entrypoint."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastmcp.server.http import create_streamable_http_app

from skillstore.config import settings
from skillstore.database import async_session, init_db
from skillstore.errors import ErrorCode, SkillStoreError
from skillstore.mcp.skills import mcp
from skillstore.routers import skills, uploads
from skillstore.schemas.envelope import fail, ok
from skillstore.services.session_service import run_cleanup_loop

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)

# MCP tools over streamable HTTP, mounted at /mcp below
mcp_app = create_streamable_http_app(server=mcp, streamable_http_path="/")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()

    cleanup_task: asyncio.Task | None = None
    if settings.session_cleanup_enabled:
        logger.info(
            "Sweeping expired upload sessions every %ds", settings.session_cleanup_interval_seconds
        )
        cleanup_task = asyncio.create_task(
            run_cleanup_loop(async_session, settings.session_cleanup_interval_seconds)
        )

    # The MCP session manager only runs inside its own lifespan
    async with mcp_app.router.lifespan_context(mcp_app):
        yield

    # Shutdown
    if cleanup_task is not None:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task


app = FastAPI(
    title="Skillstore",
    description="Versioned storage for skills: named bundles of files",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error envelope ───────────────────────────────────────────────────


@app.exception_handler(SkillStoreError)
async def skillstore_error_handler(request: Request, exc: SkillStoreError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=fail(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400, content=fail(ErrorCode.VALIDATION_ERROR, "; ".join(messages))
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=fail(ErrorCode.DB_ERROR, "Internal server error"))


# Mount routers (upload routes before the /{skill_ref} catch-alls)
app.include_router(uploads.router, prefix="/api/skills/upload", tags=["uploads"])
app.include_router(skills.router, prefix="/api/skills", tags=["skills"])
app.mount("/mcp", mcp_app)


@app.get("/api/health")
async def health():
    return ok({"status": "healthy"})
