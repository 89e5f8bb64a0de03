"""
Pytest configuration and fixtures.

Использование:
    pytest tests/ -v
"""

from typing import Dict, List, Optional

import pytest

from compliance.config import ComplianceSettings
from compliance.core.exceptions import ProviderConnectionError, ResourceQueryError
from compliance.core.models import CheckResult, CheckStatus, Severity
from compliance.core.snapshots import (
    ContainerInspection,
    ImageInspection,
    PodSnapshot,
    RoleBindingSnapshot,
)


# ═══════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path):
    """Settings без .env и с отчётами во временной директории."""
    return ComplianceSettings(_env_file=None, report_output_dir=tmp_path / "reports")


# ═══════════════════════════════════════════════════════
# FAKE PROVIDERS
# ═══════════════════════════════════════════════════════

class FakeClusterProvider:
    """In-memory ClusterProvider с инъекцией ошибок."""

    def __init__(
        self,
        pods: Optional[List[PodSnapshot]] = None,
        namespaces: Optional[List[str]] = None,
        network_policies: Optional[Dict[str, int]] = None,
        bindings: Optional[List[RoleBindingSnapshot]] = None,
        fail_on: Optional[set] = None,
        connect_error: bool = False,
    ):
        self.pods = pods or []
        self.namespaces = namespaces or []
        self.network_policies = network_policies or {}
        self.bindings = bindings or []
        self.fail_on = fail_on or set()
        self.connect_error = connect_error
        self.opened = False
        self.closed = False
        self.pod_queries: List[str] = []

    def __enter__(self):
        if self.connect_error:
            raise ProviderConnectionError("Kubernetes API", "no kubeconfig")
        self.opened = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def _maybe_fail(self, key: str):
        if key in self.fail_on:
            raise ResourceQueryError(key, "injected failure")

    def list_pods(self, namespace: str = ""):
        self._maybe_fail("pods")
        self.pod_queries.append(namespace)
        if namespace:
            return [p for p in self.pods if p.namespace == namespace]
        return list(self.pods)

    def list_namespaces(self):
        self._maybe_fail("namespaces")
        return list(self.namespaces)

    def count_network_policies(self, namespace: str) -> int:
        self._maybe_fail(f"networkpolicies:{namespace}")
        return self.network_policies.get(namespace, 0)

    def list_cluster_role_bindings(self):
        self._maybe_fail("clusterrolebindings")
        return list(self.bindings)


class FakeRuntimeProvider:
    """In-memory RuntimeProvider с инъекцией ошибок."""

    def __init__(
        self,
        containers: Optional[Dict[str, ContainerInspection]] = None,
        images: Optional[Dict[str, ImageInspection]] = None,
        failing_containers: Optional[set] = None,
        connect_error: bool = False,
    ):
        self.containers = containers or {}
        self.images = images or {}
        self.failing_containers = failing_containers or set()
        self.connect_error = connect_error
        self.closed = False

    def __enter__(self):
        if self.connect_error:
            raise ProviderConnectionError("Docker daemon", "connection refused")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def list_container_ids(self):
        return list(self.containers) + sorted(self.failing_containers)

    def inspect_container(self, container_id: str) -> ContainerInspection:
        if container_id in self.failing_containers:
            raise ResourceQueryError(f"container {container_id}", "injected failure")
        return self.containers[container_id]

    def inspect_image(self, image_name: str) -> ImageInspection:
        if image_name not in self.images:
            raise ResourceQueryError(f"image {image_name}", "No such image")
        return self.images[image_name]


@pytest.fixture
def fake_cluster():
    return FakeClusterProvider


@pytest.fixture
def fake_runtime():
    return FakeRuntimeProvider


def hardened_container(name: str = "app", **overrides) -> ContainerInspection:
    """Контейнер, проходящий все runtime-правила."""
    values = dict(
        name=f"/{name}",
        privileged=False,
        userns_mode="",
        user="1000",
        network_mode="bridge",
        pid_mode="",
        cap_add=[],
        memory=256 * 1024 * 1024,
        cpu_quota=50000,
        nano_cpus=0,
        restart_policy="unless-stopped",
        healthcheck_test=["CMD", "curl", "-f", "http://localhost/"],
        readonly_rootfs=True,
    )
    values.update(overrides)
    return ContainerInspection(**values)


@pytest.fixture
def make_hardened_container():
    return hardened_container


# ═══════════════════════════════════════════════════════
# RESULT FACTORIES
# ═══════════════════════════════════════════════════════

def make_result(
    rule_id: str = "TEST-001",
    severity: Severity = Severity.MEDIUM,
    status: CheckStatus = CheckStatus.FAILED,
    category: str = "Test",
    resource: str = "res",
    message: str = "message",
) -> CheckResult:
    return CheckResult(
        rule_id=rule_id,
        rule_name=f"Rule {rule_id}",
        category=category,
        severity=severity,
        status=status,
        resource=resource,
        message=message,
        remediation="fix it" if status == CheckStatus.FAILED else "",
    )


@pytest.fixture
def result_factory():
    return make_result


# ═══════════════════════════════════════════════════════
# FILE TREES
# ═══════════════════════════════════════════════════════

DEPLOYMENT_LATEST = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: myapp
spec:
  template:
    spec:
      containers:
        - name: myapp
          image: myapp:latest
"""

DOCKERFILE_NO_USER = """\
FROM ubuntu:22.04
RUN apt-get update && apt-get install -y python3
COPY . /app
CMD ["python3", "/app/main.py"]
"""

COMPOSE_INSECURE = """\
services:
  cache:
    image: redis
    privileged: true
    network_mode: host
"""


@pytest.fixture
def write_file(tmp_path):
    """Записать файл относительно tmp_path и вернуть его путь."""
    def _write(relative: str, content: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write
