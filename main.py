import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardex.api.v1 import router as v1_endpoint
from cardex.jobs.reprocess import start_reprocess_cronjob, stop_reprocess_cronjob
from cardex.pipeline import get_default_extractor
from cardex.utils.config import get_settings
from cardex.utils.logger import HealthCheckFilter, api_logger, scheduler_logger, set_log_level


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load environment variables
    load_dotenv()
    set_log_level(get_settings().log_level)

    # Startup
    extractor = get_default_extractor()
    api_logger.info(f"📚 Extractor ready ({len(extractor.knowledge.denylist)} denylisted words)")
    scheduler_logger.info("Starting reprocess cronjob scheduler...")
    start_reprocess_cronjob()
    yield
    # Shutdown
    scheduler_logger.info("Stopping reprocess cronjob scheduler...")
    stop_reprocess_cronjob()


app = FastAPI(
    title="API",
    description="Cardex listing extraction API",
    version="1.0.0",
    lifespan=lifespan,
)

origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())

app.include_router(v1_endpoint, prefix="/api/v1", tags=["API Version 1"])


@app.get("/", tags=["Root"])
def read_root():
    return {"status": "ok", "message": "Welcome Cardex API!"}


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "message": "Cardex API is running", "version": "1.0.0"}


# To run this application for development:
# uvicorn main:app --reload
