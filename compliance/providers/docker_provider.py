"""
Docker resource provider.

Uses the low-level API of the `docker` SDK so that a single failing
container inspect can be skipped without losing the rest of the list.
"""

import logging
from typing import Any, Dict, List, Optional

import docker
from docker.errors import DockerException

from ..core.exceptions import ProviderConnectionError, ResourceQueryError
from ..core.snapshots import ContainerInspection, ImageInspection

logger = logging.getLogger(__name__)


class DockerProvider:
    """Провайдер inspect-записей Docker Engine."""

    def __init__(self, base_url: Optional[str] = None, timeout: int = 30):
        """
        Args:
            base_url: Адрес daemon (None = из окружения: DOCKER_HOST и т.д.)
            timeout: Таймаут запросов в секундах
        """
        self.base_url = base_url
        self.timeout = timeout
        self._client: Optional[docker.DockerClient] = None

    def __enter__(self) -> "DockerProvider":
        try:
            if self.base_url:
                self._client = docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
            else:
                self._client = docker.from_env(timeout=self.timeout)
            self._client.ping()
        except (DockerException, OSError) as e:
            self._close()
            raise ProviderConnectionError("Docker daemon", str(e)) from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._close()

    def _close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning(f"Error closing Docker client: {e}")
            self._client = None

    @property
    def api(self) -> docker.APIClient:
        if self._client is None:
            raise ProviderConnectionError("Docker daemon", "provider is not open")
        return self._client.api

    # === Queries ===

    def list_container_ids(self) -> List[str]:
        """ID всех контейнеров, включая остановленные."""
        try:
            containers = self.api.containers(all=True)
        except (DockerException, OSError) as e:
            raise ResourceQueryError("containers", str(e)) from e
        return [c["Id"] for c in containers]

    def inspect_container(self, container_id: str) -> ContainerInspection:
        try:
            attrs = self.api.inspect_container(container_id)
        except (DockerException, OSError) as e:
            raise ResourceQueryError(f"container {container_id[:12]}", str(e)) from e
        return container_from_attrs(attrs)

    def inspect_image(self, image_name: str) -> ImageInspection:
        try:
            attrs = self.api.inspect_image(image_name)
        except (DockerException, OSError) as e:
            raise ResourceQueryError(f"image {image_name}", str(e)) from e
        return image_from_attrs(image_name, attrs)


def container_from_attrs(attrs: Dict[str, Any]) -> ContainerInspection:
    """Преобразовать payload docker inspect в ContainerInspection."""
    host_config = attrs.get("HostConfig") or {}
    container_config = attrs.get("Config") or {}
    healthcheck = container_config.get("Healthcheck") or {}
    restart_policy = host_config.get("RestartPolicy") or {}

    return ContainerInspection(
        name=(attrs.get("Name") or attrs.get("Id", "")[:12]).lstrip("/"),
        privileged=bool(host_config.get("Privileged")),
        userns_mode=host_config.get("UsernsMode") or "",
        user=container_config.get("User") or "",
        network_mode=host_config.get("NetworkMode") or "",
        pid_mode=host_config.get("PidMode") or "",
        cap_add=list(host_config.get("CapAdd") or []),
        memory=int(host_config.get("Memory") or 0),
        cpu_quota=int(host_config.get("CpuQuota") or 0),
        nano_cpus=int(host_config.get("NanoCpus") or 0),
        restart_policy=restart_policy.get("Name") or "",
        healthcheck_test=list(healthcheck.get("Test") or []),
        readonly_rootfs=bool(host_config.get("ReadonlyRootfs")),
    )


def image_from_attrs(image_name: str, attrs: Dict[str, Any]) -> ImageInspection:
    """Преобразовать payload docker image inspect в ImageInspection."""
    image_config = attrs.get("Config") or {}
    return ImageInspection(
        name=image_name,
        repo_tags=list(attrs.get("RepoTags") or []),
        size=int(attrs.get("Size") or 0),
        user=image_config.get("User") or "",
        exposed_ports=list((image_config.get("ExposedPorts") or {}).keys()),
    )
