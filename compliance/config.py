"""Конфигурация compliance engine."""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ComplianceSettings(BaseSettings):
    """Настройки проверок и отчётов (переменные окружения COMPLIANCE_*)."""

    model_config = SettingsConfigDict(env_prefix="COMPLIANCE_", env_file=".env", extra="ignore")

    # === Kubernetes ===
    kubeconfig: Optional[str] = None  # None = $KUBECONFIG или ~/.kube/config
    kube_context: Optional[str] = None
    system_namespace_prefix: str = "kube-"
    system_binding_prefix: str = "system:"
    cluster_admin_role: str = "cluster-admin"

    # === Docker ===
    docker_base_url: Optional[str] = None  # None = DOCKER_HOST / unix socket
    docker_timeout: int = 30
    image_size_limit_mb: int = 1000

    # === Files ===
    default_path: str = "."
    exclude_dirs: List[str] = Field(default_factory=lambda: [
        ".git",
        "node_modules",
        ".venv",
        "venv",
        "__pycache__",
        ".pytest_cache",
    ])

    # === Reports ===
    report_title: str = "Compliance Report"
    report_output_dir: Path = Path("compliance_reports")

    # === Logging ===
    log_level: str = "WARNING"


@lru_cache
def get_settings() -> ComplianceSettings:
    return ComplianceSettings()
