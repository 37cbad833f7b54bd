import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rollout import config
from rollout.metrics import setup_metrics
from rollout.routers.features import router as features_router
from rollout.routers.health import router as health_router
from rollout.routers.ui import router as ui_router
from rollout.services.bucketing import HashBucketingProvider
from rollout.services.feature_manager import FeatureManager, FeatureManagerInterface
from rollout.storage import build_feature_storage

logger = logging.getLogger(__name__)

async def not_implemented_handler(request: Request, exc: NotImplementedError):
    logger.warning("%s %s is not implemented", request.method, request.url.path)
    return JSONResponse(status_code=501, content={"detail": "not implemented"})

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    storage = getattr(app.state, "feature_storage", None)
    if storage is not None:
        logger.info("closing feature store")
        await storage.close()

def create_app(manager: FeatureManagerInterface = None) -> FastAPI:
    app = FastAPI(title="Rollout", version="0.1.0", lifespan=lifespan)

    # CORS (adjust as needed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if manager is None:
        # stores built here are owned by the app and closed on shutdown
        app.state.feature_storage = build_feature_storage()
        manager = FeatureManager(app.state.feature_storage, HashBucketingProvider())
    app.state.feature_manager = manager
    app.add_exception_handler(NotImplementedError, not_implemented_handler)

    # Routers
    app.include_router(health_router, prefix="")
    app.include_router(features_router, prefix="")
    app.include_router(ui_router, prefix="")

    # Metrics endpoint
    setup_metrics(app)
    return app

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
app = create_app()
