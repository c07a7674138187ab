"""Marine compliance configuration: backend endpoints, timeouts and preferences."""

from pydantic import model_validator
from pydantic_settings import BaseSettings

from marinecompliance.core.types import API_TYPES


class Settings(BaseSettings):
    # Compliance backends
    api_base_url: str = "http://localhost:5000/api"
    enhanced_check_path: str = "/compliance-enhanced/check"
    enhanced_rules_path: str = "/compliance-enhanced/rules"
    legacy_demo_path: str = "/compliance/demo"
    health_path: str = "/health"
    user_agent: str = "ProjectInsights/1.0 (Marine Infrastructure Analysis)"

    # Per-call timeouts (seconds). A timeout counts as a failed attempt.
    request_timeout_seconds: float = 5.0
    status_timeout_seconds: float = 5.0

    # Source preference used until the dashboard overrides it
    default_api_preference: str = "enhanced"

    # MLflow: local SQLite unless MLFLOW_TRACKING_URI is set
    mlflow_tracking_uri: str = "sqlite:///mlruns/mlflow.db"
    mlflow_experiment_name: str = "marinecompliance"

    # Logging
    log_json: bool = True
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _normalize(self) -> "Settings":
        """Strip the trailing slash off the base URL and check the preference."""
        self.api_base_url = self.api_base_url.strip().rstrip("/")
        preference = self.default_api_preference.strip().lower()
        if preference not in API_TYPES:
            raise ValueError(
                f"default_api_preference must be one of {API_TYPES}, got {preference!r}"
            )
        self.default_api_preference = preference
        return self

    def url_for(self, path: str) -> str:
        """Join an endpoint path onto the API base URL."""
        return f"{self.api_base_url}/{path.lstrip('/')}"


settings = Settings()
