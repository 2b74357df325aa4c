from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
from contextlib import asynccontextmanager

from mindnamo.core.config import settings
from mindnamo.core.database import session_manager, aget_db
from mindnamo.core.errors import AccountError
from mindnamo.core.ratelimit import ip_limiter, rate_limiter
from mindnamo.middleware.route_gate import RouteGateMiddleware

from mindnamo.api.pages import router as pages_router
from mindnamo.api.v1.endpoints.auth import router as auth_router
from mindnamo.api.v1.endpoints.setup import router as setup_router
from mindnamo.api.v1.endpoints.accounts import router as accounts_router
from mindnamo.api.v1.endpoints.dashboard import router as dashboard_router
from mindnamo.api.v1.endpoints.uploads import router as uploads_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    try:
        logger.info("🚀 Starting Mind Namo admin application...")

        logger.info("🔌 Initializing database connection pool...")
        await session_manager.init()
        logger.info("✅ Database connection pool ready")

        rate_limiter.init()

        if not settings.MAIL_CONFIGURED:
            logger.warning("⚠️ Mail provider not configured. Verification codes will not be delivered.")
    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 Mind Namo admin startup complete")
        yield
    finally:
        logger.info("🛑 Beginning application shutdown...")
        await rate_limiter.close()
        logger.info("🔌 Closing database connections...")
        await session_manager.close()
        logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="Mind Namo Admin API",
    description="Back-office API for the Mind Namo marketplace",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = ip_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid input", "detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


app.add_middleware(RouteGateMiddleware)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


# CORS Configuration
if settings.ENVIRONMENT == "production":
    allowed_origins = [settings.FRONTEND_URL]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health Check"])
async def health_check(db: AsyncSession = Depends(aget_db)):
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": "Mind Namo Admin API",
            "database": "connected",
            "rate_limiter": "enabled" if rate_limiter.enabled else "disabled",
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "Mind Namo Admin API",
            "database": "disconnected",
            "error": str(e)
        }


app.include_router(pages_router)
app.include_router(auth_router, prefix="/api/v1", tags=["Authentication"])
app.include_router(setup_router, prefix="/api/v1", tags=["Account Setup"])
app.include_router(accounts_router, prefix="/api/v1", tags=["Accounts"])
app.include_router(dashboard_router, prefix="/api/v1", tags=["Dashboard"])
app.include_router(uploads_router, prefix="/api/v1", tags=["Uploads"])

logger.info(f"✅ Loaded {len(app.routes)} routes")
