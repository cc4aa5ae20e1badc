import logging

# Log configuration (before other imports)
# ruff: noqa: E402
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True
)

from contextlib import asynccontextmanager  # noqa: E402

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from wellness import config  # noqa: E402
from wellness.api.base import api_router  # noqa: E402
from wellness.api.timer import shutdown_session_manager  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Stop every running countdown ticker before the loop closes
    await shutdown_session_manager()


app = FastAPI(
    title="Wellness Timer API",
    description="Backend API for break reminders, usage plans and billing",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all API routes
app.include_router(api_router)


@app.get("/")
def read_root():
    return {
        "message": "Wellness Timer API",
        "docs": "/docs",
        "version": "1.0.0"
    }
