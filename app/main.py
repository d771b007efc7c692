from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.me import router as me_router
from app.api.plans import router as plans_router
from app.api.workouts import router as workouts_router
from app.config.settings import Settings
from app.core.clock import Clock, utc_now
from app.core.logger import setup_logger
from app.db.session import check_connection
from app.plans.generation_client import GenerationClient
from app.plans.service import TrainingPlanService
from app.plans.store import build_stores


def create_app(
    settings: Settings | None = None,
    *,
    clock: Clock = utc_now,
    generation_client: GenerationClient | None = None,
) -> FastAPI:
    """Build the application with its stores and plan service on app.state.

    Args:
        settings: Runtime configuration; loaded from the environment when omitted
        clock: Time source shared by stores, generation and the service
        generation_client: Override for the provider client (tests)
    """
    settings = settings or Settings()
    setup_logger(level=settings.log_level, log_file=settings.log_file)

    stores = build_stores(settings.database_url, clock)
    if stores.engine is not None:
        check_connection(stores.engine)
    client = generation_client or GenerationClient.from_settings(settings, clock=clock)
    service = TrainingPlanService(stores, client, model=settings.plan_model, clock=clock)

    app = FastAPI(title="PB Assistant")
    app.state.settings = settings
    app.state.stores = stores
    app.state.plan_service = service

    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api = APIRouter(prefix="/api")

    @api.get("/health")
    def health():
        return {"status": "ok"}

    api.include_router(me_router)
    api.include_router(plans_router)
    api.include_router(workouts_router)
    app.include_router(api)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        logger.debug(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
        return response

    @app.get("/")
    def root():
        return {"status": "ok"}

    logger.info(
        "FastAPI application initialized",
        store_backend=stores.backend,
        mock_mode=client.is_mock_mode,
    )
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=8000)
