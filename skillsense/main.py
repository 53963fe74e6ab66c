import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
from starlette.exceptions import HTTPException as StarletteHTTPException
import sentry_sdk

from skillsense import __version__
from skillsense.api.v1.documents import router as documents_router
from skillsense.api.v1.functions import router as functions_router
from skillsense.api.v1.health import router as health_router
from skillsense.api.v1.job_matches import router as job_matches_router
from skillsense.api.v1.job_requirements import router as job_requirements_router
from skillsense.api.v1.organizations import router as organizations_router
from skillsense.api.v1.sessions import router as sessions_router
from skillsense.api.v1.skills import router as skills_router
from skillsense.core.cors import cors_allowed_origins
from skillsense.core.errors import GitHubRateLimitError, SkillSenseError
from skillsense.core.rate_limit import limiter
from skillsense.core.config import settings
from dotenv import load_dotenv
from skillsense.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

logger = logging.getLogger(__name__)

app = FastAPI(title="SkillSense API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(SkillSenseError)
async def skillsense_error_handler(request: Request, exc: SkillSenseError):
    if exc.status_code >= 500:
        logger.warning("request_failed path=%s code=%s: %s", request.url.path, exc.code, exc.message)
    body = {"error": exc.message}
    if isinstance(exc, GitHubRateLimitError) and exc.reset_at is not None:
        body["reset_at"] = exc.reset_at.isoformat()
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid request.")
    return JSONResponse(status_code=400, content={"error": f"{field}: {message}" if field else message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(sessions_router, prefix="/v1", tags=["Sessions"])
app.include_router(documents_router, prefix="/v1", tags=["Documents"])
app.include_router(skills_router, prefix="/v1", tags=["Skills"])
app.include_router(job_requirements_router, prefix="/v1", tags=["Job Requirements"])
app.include_router(job_matches_router, prefix="/v1", tags=["Job Matches"])
app.include_router(organizations_router, prefix="/v1", tags=["Organizations"])
app.include_router(functions_router, prefix="/v1", tags=["Functions"])
