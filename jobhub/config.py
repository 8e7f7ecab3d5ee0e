import os
from pydantic import BaseModel


class Settings(BaseModel):
    environment: str = os.getenv("JOBHUB_ENV", "development")
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:8501")
    jobs_data_path: str = os.getenv("JOBS_DATA_PATH", "data/processed/jobs.jsonl")
    api_url: str = os.getenv("JOBHUB_API_URL", "http://localhost:8000")
    log_level: str = os.getenv("JOBHUB_LOG_LEVEL", "INFO")
    page_size: int = int(os.getenv("JOBHUB_PAGE_SIZE", "20"))
    request_timeout_s: float = float(os.getenv("JOBHUB_REQUEST_TIMEOUT_S", "5"))
    max_retries: int = int(os.getenv("JOBHUB_MAX_RETRIES", "3"))
    retry_step_ms: int = int(os.getenv("JOBHUB_RETRY_STEP_MS", "3000"))
    connectivity_host: str = os.getenv("JOBHUB_CONNECTIVITY_HOST", "1.1.1.1")
    connectivity_port: int = int(os.getenv("JOBHUB_CONNECTIVITY_PORT", "53"))
    connectivity_interval_s: float = float(os.getenv("JOBHUB_CONNECTIVITY_INTERVAL_S", "2"))

    @property
    def allowed_origins(self) -> list[str]:
        if self.environment == "production":
            return [self.frontend_url]
        return ["*"]


def get_settings() -> Settings:
    return Settings()
