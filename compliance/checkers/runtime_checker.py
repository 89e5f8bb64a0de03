"""
Container runtime checker.

Checks every container known to the daemon (running and stopped) and,
optionally, one image. Only failures are reported.
"""

from typing import Callable, List

from ..config import ComplianceSettings
from ..core.base_checker import BaseChecker
from ..core.exceptions import ResourceQueryError
from ..core.models import CheckOptions, CheckResult
from ..core.snapshots import ContainerInspection, ImageInspection, RuntimeProvider

DANGEROUS_CAPABILITIES = frozenset({
    "SYS_ADMIN",
    "SYS_PTRACE",
    "NET_ADMIN",
    "SYS_MODULE",
    "SYS_RAWIO",
    "SYS_BOOT",
    "MAC_ADMIN",
    "MAC_OVERRIDE",
})

ROOT_USERS = frozenset({"", "root", "0"})

NO_HEALTHCHECK = "NONE"

PRIVILEGED_PORT_LIMIT = 1024


def _is_root_user(user: str) -> bool:
    """Пустой user, root или uid 0 (с группой или без: "0:0", "root:root")."""
    name = (user or "").strip().split(":", 1)[0]
    return name in ROOT_USERS


def _normalize_capability(capability: str) -> str:
    capability = capability.strip().upper()
    if capability.startswith("CAP_"):
        capability = capability[len("CAP_"):]
    return capability


class RuntimeChecker(BaseChecker):
    """Проверка контейнеров и образов Docker."""

    def __init__(self, provider_factory: Callable[[], RuntimeProvider], settings: ComplianceSettings):
        """
        Args:
            provider_factory: Фабрика провайдера (новое соединение на каждый run)
            settings: Настройки (лимит размера образа)
        """
        super().__init__(name="RuntimeChecker")
        self.provider_factory = provider_factory
        self.settings = settings

    def _check(self, options: CheckOptions) -> List[CheckResult]:
        # ProviderConnectionError is not caught here: an unreachable daemon aborts the run
        with self.provider_factory() as provider:
            results: List[CheckResult] = []

            self.logger.info("Checking containers...")
            results.extend(self.run_sub_check("containers", self._check_all_containers, provider).results)

            if options.image:
                self.logger.info(f"Checking image {options.image}...")
                results.extend(
                    self.run_sub_check(f"image {options.image}", self._check_image, provider, options.image).results
                )

            return results

    def _check_all_containers(self, provider: RuntimeProvider) -> List[CheckResult]:
        results = []

        for container_id in provider.list_container_ids():
            try:
                container = provider.inspect_container(container_id)
            except ResourceQueryError as e:
                self.logger.warning(f"{self.name}: skipping container {container_id[:12]}: {e}")
                continue
            results.extend(self.check_container(container))

        return results

    def _check_image(self, provider: RuntimeProvider, image_name: str) -> List[CheckResult]:
        return self.check_image(provider.inspect_image(image_name))

    def check_container(self, container: ContainerInspection) -> List[CheckResult]:
        """Правила DOCKER-SEC/RES/CFG для одного контейнера."""
        results = []
        name = container.name.lstrip("/")

        if container.privileged:
            results.append(self.failed("DOCKER-SEC-001", name, "Container is running in privileged mode"))

        if container.userns_mode in ("", "host") and _is_root_user(container.user):
            results.append(self.failed("DOCKER-SEC-002", name, "Container is running as root"))

        if container.network_mode == "host":
            results.append(self.failed("DOCKER-SEC-003", name, "Container is using host network"))

        if container.pid_mode == "host":
            results.append(self.failed("DOCKER-SEC-004", name, "Container is using host PID namespace"))

        for capability in container.cap_add:
            if _normalize_capability(capability) in DANGEROUS_CAPABILITIES:
                results.append(self.failed(
                    "DOCKER-SEC-005", name, f"Container has dangerous capability: {capability}",
                ))

        if container.memory == 0:
            results.append(self.failed("DOCKER-RES-001", name, "Container has no memory limit"))

        if container.cpu_quota == 0 and container.nano_cpus == 0:
            results.append(self.failed("DOCKER-RES-002", name, "Container has no CPU limit"))

        if container.restart_policy in ("", "no"):
            results.append(self.failed("DOCKER-CFG-001", name, "Container has no restart policy"))

        test = container.healthcheck_test
        if not test or test[0].upper() == NO_HEALTHCHECK:
            results.append(self.failed("DOCKER-CFG-002", name, "Container has no health check"))

        if not container.readonly_rootfs:
            results.append(self.failed("DOCKER-SEC-006", name, "Container has writable root filesystem"))

        return results

    def check_image(self, image: ImageInspection) -> List[CheckResult]:
        """Правила DOCKER-IMG-001..004 для одного образа."""
        results = []

        if any(tag.endswith(":latest") for tag in image.repo_tags):
            results.append(self.failed("DOCKER-IMG-001", image.name, "Image uses 'latest' tag"))

        size_mb = image.size // (1024 * 1024)
        if size_mb > self.settings.image_size_limit_mb:
            results.append(self.failed("DOCKER-IMG-002", image.name, f"Image is large: {size_mb} MB"))

        if _is_root_user(image.user):
            results.append(self.failed("DOCKER-IMG-003", image.name, "Image runs as root by default"))

        for port_spec in image.exposed_ports:
            port_text = port_spec.split("/", 1)[0]
            if not port_text.isdigit():
                self.logger.debug(f"Ignoring unparsable exposed port '{port_spec}'")
                continue
            port = int(port_text)
            if port < PRIVILEGED_PORT_LIMIT:
                results.append(self.failed(
                    "DOCKER-IMG-004", image.name, f"Image exposes privileged port: {port}",
                ))

        return results
