from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from sentinel.api.routes import router
from sentinel.core.logging import setup_logging, get_logger
from sentinel.events.handlers import register_handlers, unregister_handlers
from sentinel.pipeline.controller import PipelineController

setup_logging()
logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("api_starting")
    register_handlers()
    # One controller per process; runs go through it one at a time
    controller = PipelineController()
    app.state.controller = controller
    yield
    logger.info("api_shutdown")
    unregister_handlers()
    close = getattr(controller.client, "close", None)
    if close is not None:
        close()


app = FastAPI(
    title="Sentinel API",
    description="Zero-shot anomaly analysis of surveillance video",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")
