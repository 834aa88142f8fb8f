import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhub.config import settings
from taskhub.api.v1.router import router as api_v1_router
from taskhub.middleware.origin_context import OriginContextMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(OriginContextMiddleware)

app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok", "version": settings.APP_VERSION}
