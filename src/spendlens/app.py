from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from spendlens.api.routes import analytics, categorize, memory
from spendlens.core import settings
from spendlens.logger import get_logger, get_logging_config, setup_logging
from spendlens.manager import CategorizerService

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        app.state.service = CategorizerService(data_dir=settings.DATA_DIR)
        logger.info(f"Services initialized. {len(app.state.service.memory)} patterns in memory.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="SpendLens", lifespan=lifespan)

    app.include_router(categorize.router)
    app.include_router(memory.router)
    app.include_router(analytics.router)
    app.include_router(analytics.catalogue_router)

    return app


app = create_app()


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=8000, log_config=get_logging_config())


if __name__ == "__main__":
    run()
