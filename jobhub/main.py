import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from jobhub.config import get_settings
from jobhub.jobs.router import router as jobs_router


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title="JobHub API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(jobs_router)

@app.get("/")
async def root():
    return {"message": "JobHub API"}


@app.get("/health")
async def health():
    return {"status": "ok", "environment": settings.environment}
