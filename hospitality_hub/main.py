from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import asyncio

from hospitality_hub.database import init_db
from hospitality_hub.access.errors import AccessError
from hospitality_hub.api.routes import router as api_router
from hospitality_hub.api.admin_routes import router as admin_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LOGGED_PREFIXES = ("/access", "/team")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup and shutdown events for the FastAPI application.
    """
    logger.info("Starting Hospitality Hub access service...")

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down Hospitality Hub access service...")

def create_app(run_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Hospitality Hub Access Service",
        description="Module access, trials, usage limits and team management for Hospitality Hub organizations",
        version="1.0.0",
        lifespan=lifespan if run_lifespan else None
    )

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific domains
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_access_requests(request: Request, call_next):
        """
        Log access and team-management requests for auditing.
        """
        start_time = asyncio.get_event_loop().time()
        tracked = request.url.path.startswith(LOGGED_PREFIXES)

        if tracked:
            client_ip = request.client.host if request.client else "unknown"
            if request.headers.get("X-Forwarded-For"):
                client_ip = request.headers.get("X-Forwarded-For").split(",")[0].strip()
            logger.info(f"Request: {request.method} {request.url.path} from {client_ip}")

        response = await call_next(request)

        if tracked:
            process_time = asyncio.get_event_loop().time() - start_time
            logger.info(f"Response: {response.status_code} in {process_time:.3f}s")

        return response

    @app.exception_handler(AccessError)
    async def access_error_handler(request: Request, exc: AccessError):
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code} ({exc.detail})")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Include routers
    app.include_router(api_router)
    app.include_router(admin_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Application health check"""
        return {
            "status": "healthy",
            "service": "hospitality-hub-access",
            "version": "1.0.0"
        }

    return app
