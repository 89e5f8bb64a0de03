"""
Static configuration file checker.

Walks a directory tree and checks:
- Kubernetes manifests (*.yaml / *.yml with apiVersion + kind)
- Dockerfiles (Dockerfile, Dockerfile.*)
- docker-compose files (docker-compose.yml, compose.yaml, ...)

Nothing is written or executed: files are only read.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml

from ..config import ComplianceSettings
from ..core.base_checker import BaseChecker
from ..core.exceptions import ManifestParseError
from ..core.images import is_floating_image
from ..core.models import CheckOptions, CheckResult

MANIFEST_EXTENSIONS = {".yaml", ".yml"}
COMPOSE_FILENAMES = {"docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"}

_API_VERSION_KEY = re.compile(r"^apiVersion\s*:", re.MULTILINE)
_KIND_KEY = re.compile(r"^kind\s*:", re.MULTILINE)

# kind -> path to the pod spec inside the object
POD_SPEC_PATHS = {
    "Pod": ("spec",),
    "Deployment": ("spec", "template", "spec"),
    "StatefulSet": ("spec", "template", "spec"),
    "DaemonSet": ("spec", "template", "spec"),
    "ReplicaSet": ("spec", "template", "spec"),
    "Job": ("spec", "template", "spec"),
    "CronJob": ("spec", "jobTemplate", "spec", "template", "spec"),
}

ROOT_USERS = {"root", "0"}


def is_kubernetes_manifest(path: Path, content: str) -> bool:
    if path.suffix.lower() not in MANIFEST_EXTENSIONS:
        return False
    return bool(_API_VERSION_KEY.search(content) and _KIND_KEY.search(content))


def is_dockerfile(path: Path) -> bool:
    return path.name == "Dockerfile" or path.name.startswith("Dockerfile.")


def is_compose_file(path: Path) -> bool:
    return path.name.lower() in COMPOSE_FILENAMES


def _nested(data: Any, keys) -> Optional[Dict[str, Any]]:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data if isinstance(data, dict) else None


class FileChecker(BaseChecker):
    """Проверка манифестов, Dockerfile и docker-compose в файловом дереве."""

    def __init__(self, settings: ComplianceSettings):
        """
        Args:
            settings: Настройки (исключаемые директории)
        """
        super().__init__(name="FileChecker")
        self.settings = settings
        self.skipped_files_count = 0

    def _check(self, options: CheckOptions) -> List[CheckResult]:
        results: List[CheckResult] = []
        self.skipped_files_count = 0

        root = options.path or self.settings.default_path
        for path in self.iter_files(root):
            results.extend(self.check_file(path))

        if self.skipped_files_count:
            self.logger.info(f"Skipped {self.skipped_files_count} unreadable or malformed files")

        return results

    def iter_files(self, root: str) -> Iterator[Path]:
        """
        Обойти дерево в лексикографическом порядке.

        Исключённые директории не посещаются; ошибки обхода игнорируются.
        """
        root_path = Path(root)
        if root_path.is_file():
            yield root_path
            return

        excluded = set(self.settings.exclude_dirs)
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = sorted(d for d in dirnames if d not in excluded)
            for filename in sorted(filenames):
                yield Path(dirpath) / filename

    def check_file(self, path: Path) -> List[CheckResult]:
        """Проверить один файл всеми подходящими классами правил."""
        manifest_candidate = path.suffix.lower() in MANIFEST_EXTENSIONS
        dockerfile = is_dockerfile(path)
        compose = is_compose_file(path)
        if not (manifest_candidate or dockerfile or compose):
            return []

        results: List[CheckResult] = []
        try:
            content = self._read(path)

            if manifest_candidate and is_kubernetes_manifest(path, content):
                results.extend(self.check_kubernetes_manifest(str(path), content))

            if dockerfile:
                results.extend(self.check_dockerfile(str(path), content))

            if compose:
                results.extend(self.check_compose(str(path), content))

        except ManifestParseError as e:
            self.skipped_files_count += 1
            self.logger.debug(f"Skipping {path}: {e}")
            return []

        return results

    def _read(self, path: Path) -> str:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestParseError(str(path), str(e)) from e

    def _load_yaml_documents(self, resource: str, content: str) -> List[Any]:
        try:
            return [doc for doc in yaml.safe_load_all(content) if doc is not None]
        # SafeLoader raises ValueError/TypeError on unconstructible scalars (2024-02-30)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            raise ManifestParseError(resource, str(e)) from e

    # === Kubernetes manifests ===

    def check_kubernetes_manifest(self, resource: str, content: str) -> List[CheckResult]:
        """FILE-K8S-001..004 для каждого контейнера каждого workload-документа."""
        results = []

        for document in self._load_yaml_documents(resource, content):
            if not isinstance(document, dict):
                continue

            kind = document.get("kind")
            if not isinstance(kind, str):
                continue

            spec_path = POD_SPEC_PATHS.get(kind)
            if spec_path is None:
                continue

            pod_spec = _nested(document, spec_path)
            if pod_spec is None:
                continue

            containers = pod_spec.get("containers") or []
            if not isinstance(containers, list):
                continue

            for container in containers:
                if isinstance(container, dict):
                    results.extend(self._check_manifest_container(resource, container))

        return results

    def _check_manifest_container(self, resource: str, container: Dict[str, Any]) -> List[CheckResult]:
        results = []
        name = container.get("name", "")

        image = container.get("image")
        if not isinstance(image, str) or is_floating_image(image):
            results.append(self.failed("FILE-K8S-001", resource, f"Container '{name}' uses latest or no tag"))

        resources = container.get("resources")
        # an empty mapping counts as present, only absent or non-mapping blocks fail
        if not isinstance(resources, dict) or not isinstance(resources.get("limits"), dict):
            results.append(self.failed("FILE-K8S-002", resource, f"Container '{name}' has no resource limits"))

        if not isinstance(container.get("securityContext"), dict):
            results.append(self.failed("FILE-K8S-003", resource, f"Container '{name}' has no securityContext"))

        if container.get("livenessProbe") is None:
            results.append(self.failed("FILE-K8S-004", resource, f"Container '{name}' has no livenessProbe"))

        return results

    # === Dockerfiles ===

    def check_dockerfile(self, resource: str, content: str) -> List[CheckResult]:
        """
        Построчные правила (FILE-DOCKER-001/002), затем файловые (003/004/005).

        Комментарии пропускаются. Последний USER root/0 считается отсутствием
        USER, HEALTHCHECK NONE - отсутствием HEALTHCHECK. Базовые образы
        scratch и ссылки на ранее объявленные стадии не проверяются на тег.
        """
        results = []

        last_user: Optional[str] = None
        last_healthcheck: Optional[str] = None
        stage_aliases = set()
        floating_base = False

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split()
            instruction = parts[0].upper()
            arguments = parts[1:]

            if instruction == "USER" and arguments:
                last_user = arguments[0]

            elif instruction == "HEALTHCHECK" and arguments:
                last_healthcheck = arguments[0].upper()

            elif instruction == "FROM" and arguments:
                image, alias = self._parse_from(arguments)
                if image.lower() != "scratch" and image.lower() not in stage_aliases:
                    if is_floating_image(image):
                        floating_base = True
                if alias:
                    stage_aliases.add(alias.lower())

            elif instruction == "ADD" and "http" not in line and ".tar" not in line:
                results.append(self.failed("FILE-DOCKER-001", resource, "Use COPY instead of ADD for local files"))

            if "curl" in line or "wget" in line:
                if "&&" not in line or "rm" not in line:
                    results.append(self.failed(
                        "FILE-DOCKER-002", resource, "Downloaded files should be cleaned up in same layer",
                    ))

        if last_user is None or last_user.split(":", 1)[0] in ROOT_USERS:
            results.append(self.failed("FILE-DOCKER-003", resource, "Dockerfile has no non-root USER directive"))

        if last_healthcheck is None or last_healthcheck == "NONE":
            results.append(self.failed("FILE-DOCKER-004", resource, "Dockerfile has no HEALTHCHECK"))

        if floating_base:
            results.append(self.failed("FILE-DOCKER-005", resource, "Base image uses 'latest' or no tag"))

        return results

    @staticmethod
    def _parse_from(arguments: List[str]):
        """FROM [--platform=...] image [AS name] -> (image, alias)."""
        args = [a for a in arguments if not a.startswith("--")]
        if not args:
            return "", None
        image = args[0]
        alias = None
        if len(args) >= 3 and args[1].upper() == "AS":
            alias = args[2]
        return image, alias

    # === docker-compose ===

    def check_compose(self, resource: str, content: str) -> List[CheckResult]:
        """FILE-COMPOSE-001..004 для каждого сервиса в порядке объявления."""
        results = []

        for document in self._load_yaml_documents(resource, content):
            services = document.get("services") if isinstance(document, dict) else None
            if not isinstance(services, dict):
                continue

            for service_name, service in services.items():
                if isinstance(service, dict):
                    results.extend(self._check_compose_service(resource, str(service_name), service))

        return results

    def _check_compose_service(self, resource: str, name: str, service: Dict[str, Any]) -> List[CheckResult]:
        results = []

        if service.get("privileged") is True:
            results.append(self.failed("FILE-COMPOSE-001", resource, f"Service '{name}' is privileged"))

        if service.get("network_mode") == "host":
            results.append(self.failed("FILE-COMPOSE-002", resource, f"Service '{name}' uses host network"))

        if service.get("restart") is None and service.get("deploy") is None:
            results.append(self.failed("FILE-COMPOSE-003", resource, f"Service '{name}' has no restart policy"))

        image = service.get("image")
        if isinstance(image, str) and is_floating_image(image):
            results.append(self.failed("FILE-COMPOSE-004", resource, f"Service '{name}' uses latest or no tag"))

        return results
