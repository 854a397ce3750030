import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.exceptions import AppError, InternalError, ValidationError
from app.core.rate_limit import default_limiter
from app.core.timeutils import utcnow
from app.database.supabase_client import SupabaseClient
from app.modules.auth import routes as auth_routes
from app.modules.reports import routes as reports_routes
from app.modules.expenses import routes as expenses_routes
from app.modules.receipts import routes as receipts_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = default_limiter


def _error_response(error: AppError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=error.headers())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        message = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
        problems.append(f"{field}: {message}" if field else message)
    return _error_response(ValidationError("; ".join(problems) or None))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    response = JSONResponse(
        status_code=429,
        content={"error": "rate_limit_exceeded", "message": f"Rate limit exceeded: {exc.detail}"},
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return _error_response(InternalError())


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(reports_routes.router, prefix="/api/v1")
app.include_router(expenses_routes.router, prefix="/api/v1")
app.include_router(receipts_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    logger.info(f"Supabase configured: {SupabaseClient.is_configured()}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.options("/{path:path}", include_in_schema=False)
@default_limiter.exempt
async def preflight(path: str):
    """Answer bare OPTIONS requests; CORS preflights are handled by CORSMiddleware."""
    return Response(status_code=200)


@app.get("/")
async def root():
    return {"message": "Welcome to ND Express", "status": "healthy"}


@app.get("/health")
@default_limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@default_limiter.exempt
async def ready():
    """Readiness check: extend here with DB checks if needed."""
    return {"status": "ready"}


@app.get("/api/v1/status")
async def status():
    """Which backends are configured; never their values."""
    return {
        "success": True,
        "status": {
            "supabase": SupabaseClient.is_configured(),
            "openai": bool(settings.openai_api_key),
            "environment": settings.environment,
        },
        "timestamp": utcnow().isoformat(),
    }
