from pydantic_settings import BaseSettings
from typing import Optional
import os


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    app_name: str = "Kubedash API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Kubernetes Settings
    kubeconfig_path: str = os.path.expanduser("~/.kube/config")
    default_context: Optional[str] = None
    in_cluster: bool = False
    request_timeout_seconds: float = 10.0

    # Overview Settings
    event_window_minutes: int = 60
    default_max_pods: int = 110

    # Metrics server Settings
    enable_metrics: bool = True
    metrics_server_name: str = "metrics-server"
    metrics_server_namespace: str = "kube-system"

    # CORS Settings
    allowed_origins: list = ["*"]
    allowed_methods: list = ["GET", "OPTIONS"]
    allowed_headers: list = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
