from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Tuple, Union
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite://./facegroup.db"
    # Security
    JWT_SECRET: str = "dev-jwt-secret-change-me-very-long-32-chars-minimum"
    # App
    APP_ENV: str = "development"
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://127.0.0.1:3000"

    # Redis (cache + rq)
    REDIS_URL: str = "redis://127.0.0.1:6379/0"
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 300
    JOBS_BACKEND: str = "inline"

    # Observability
    METRICS_ENABLED: bool = False
    SENTRY_DSN: str = ""

    # Face++ FaceSet API
    FACEPP_API_ENDPOINT: str = "https://api-us.faceplusplus.com"
    FACEPP_API_KEY: str = ""
    FACEPP_API_SECRET: str = ""
    FACEPP_TIMEOUT_SECONDS: float = 10.0
    FACEPP_MAX_RESULTS: int = 5

    # Clustering
    CLUSTER_SIMILARITY_THRESHOLD: float = 85.0
    RECLUSTER_SIMILARITY_THRESHOLD: float = 80.0
    CLUSTER_MAX_CANDIDATES: int = 100
    CLUSTER_SEARCH_BATCH_SIZE: int = 5
    CLUSTER_BATCH_PAUSE_SECONDS: float = 1.0
    CLUSTER_PROBES_PER_CLUSTER: int = 3
    CLUSTER_PROBE_DELAY_SECONDS: float = 0.15
    # one merge pass per offset, run at (threshold - offset)
    CLUSTER_MERGE_THRESHOLD_OFFSETS: str = "0,5"

    # Rate limits
    RECLUSTER_RATE_LIMIT: str = "5/minute"

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    @property
    def merge_threshold_offsets(self) -> Tuple[float, ...]:
        return tuple(float(part) for part in self.CLUSTER_MERGE_THRESHOLD_OFFSETS.split(",") if part.strip())

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
