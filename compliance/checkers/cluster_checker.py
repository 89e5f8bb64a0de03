"""
Cluster resource checker.

Checks:
- Pod security context (privileged, non-root, read-only root fs, host namespaces)
- Container hygiene (image tags, liveness/readiness probes)
- Resource limits and requests
- NetworkPolicy coverage per namespace
- cluster-admin ClusterRoleBindings
"""

from typing import Callable, List

from ..config import ComplianceSettings
from ..core.base_checker import BaseChecker
from ..core.exceptions import ProviderConnectionError, ResourceQueryError
from ..core.images import is_floating_image
from ..core.models import CheckOptions, CheckResult
from ..core.snapshots import ClusterProvider, PodSnapshot


class ClusterChecker(BaseChecker):
    """Проверка ресурсов Kubernetes-кластера."""

    def __init__(self, provider_factory: Callable[[], ClusterProvider], settings: ComplianceSettings):
        """
        Args:
            provider_factory: Фабрика провайдера (новое соединение на каждый run)
            settings: Настройки (префиксы системных namespaces/bindings)
        """
        super().__init__(name="ClusterChecker")
        self.provider_factory = provider_factory
        self.settings = settings

    def _check(self, options: CheckOptions) -> List[CheckResult]:
        try:
            with self.provider_factory() as provider:
                return self._check_cluster(provider, options)
        except ProviderConnectionError as e:
            self.logger.warning(f"Skipping cluster checks: {e}")
            return []

    def _check_cluster(self, provider: ClusterProvider, options: CheckOptions) -> List[CheckResult]:
        results: List[CheckResult] = []

        # Pods are listed once and shared by the per-pod sub-checks
        self.logger.info("Listing pods...")
        try:
            pods = provider.list_pods(options.namespace)
        except ResourceQueryError as e:
            self.logger.warning(f"{self.name}: skipping pod checks: {e}")
            pods = None

        if pods is not None:
            self.logger.info("Checking pod security...")
            results.extend(self.run_sub_check("pod security", self.check_pod_security, pods).results)

            self.logger.info("Checking container hygiene...")
            results.extend(self.run_sub_check("containers", self.check_containers, pods).results)

            self.logger.info("Checking resource limits...")
            results.extend(self.run_sub_check("resources", self.check_resources, pods).results)

        self.logger.info("Checking network policies...")
        results.extend(
            self.run_sub_check("network policies", self.check_network_policies, provider, options.namespace).results
        )

        self.logger.info("Checking RBAC...")
        results.extend(self.run_sub_check("rbac", self.check_rbac, provider).results)

        return results

    def check_pod_security(self, pods: List[PodSnapshot]) -> List[CheckResult]:
        """K8S-SEC-001..005. K8S-SEC-001 выдаёт и passed, и failed."""
        results = []

        for pod in pods:
            for container in pod.containers:
                if container.privileged:
                    results.append(self.failed(
                        "K8S-SEC-001", pod.locator,
                        f"Container '{container.name}' is running in privileged mode",
                    ))
                else:
                    results.append(self.passed(
                        "K8S-SEC-001", pod.locator,
                        f"Container '{container.name}' is not privileged",
                    ))

                if container.run_as_non_root is not True:
                    results.append(self.failed(
                        "K8S-SEC-002", pod.locator,
                        f"Container '{container.name}' may run as root",
                    ))

                if container.read_only_root_filesystem is not True:
                    results.append(self.failed(
                        "K8S-SEC-003", pod.locator,
                        f"Container '{container.name}' has writable root filesystem",
                    ))

            if pod.host_network:
                results.append(self.failed("K8S-SEC-004", pod.locator, "Pod is using host network"))

            if pod.host_pid:
                results.append(self.failed("K8S-SEC-005", pod.locator, "Pod is using host PID namespace"))

        return results

    def check_containers(self, pods: List[PodSnapshot]) -> List[CheckResult]:
        """K8S-IMG-001, K8S-PROBE-001, K8S-PROBE-002."""
        results = []

        for pod in pods:
            for container in pod.containers:
                if is_floating_image(container.image):
                    results.append(self.failed(
                        "K8S-IMG-001", pod.locator,
                        f"Container '{container.name}' uses latest or no tag: {container.image}",
                    ))

                if not container.has_liveness_probe:
                    results.append(self.failed(
                        "K8S-PROBE-001", pod.locator,
                        f"Container '{container.name}' has no liveness probe",
                    ))

                if not container.has_readiness_probe:
                    results.append(self.failed(
                        "K8S-PROBE-002", pod.locator,
                        f"Container '{container.name}' has no readiness probe",
                    ))

        return results

    def check_resources(self, pods: List[PodSnapshot]) -> List[CheckResult]:
        """K8S-RES-001..004 (отсутствующая или нулевая quantity = не задана)."""
        results = []

        for pod in pods:
            for container in pod.containers:
                checks = (
                    ("K8S-RES-001", container.cpu_limit, "CPU limit"),
                    ("K8S-RES-002", container.memory_limit, "memory limit"),
                    ("K8S-RES-003", container.cpu_request, "CPU request"),
                    ("K8S-RES-004", container.memory_request, "memory request"),
                )
                for rule_id, quantity, label in checks:
                    if not quantity:
                        results.append(self.failed(
                            rule_id, pod.locator,
                            f"Container '{container.name}' has no {label}",
                        ))

        return results

    def check_network_policies(self, provider: ClusterProvider, namespace: str = "") -> List[CheckResult]:
        """
        K8S-NET-001: ровно один результат на каждый несистемный namespace.

        Ошибка запроса NetworkPolicies пропускает только этот namespace.
        """
        results = []

        for ns in provider.list_namespaces():
            if ns.startswith(self.settings.system_namespace_prefix):
                continue
            if namespace and ns != namespace:
                continue

            outcome = self.run_sub_check(
                f"network policies in {ns}", self._check_namespace_policies, provider, ns
            )
            results.extend(outcome.results)

        return results

    def _check_namespace_policies(self, provider: ClusterProvider, namespace: str) -> List[CheckResult]:
        count = provider.count_network_policies(namespace)
        if count == 0:
            return [self.failed("K8S-NET-001", namespace, f"Namespace '{namespace}' has no NetworkPolicies")]
        return [self.passed("K8S-NET-001", namespace, f"Namespace '{namespace}' has {count} NetworkPolicies")]

    def check_rbac(self, provider: ClusterProvider) -> List[CheckResult]:
        """K8S-RBAC-001: cluster-admin у несистемных bindings."""
        results = []

        for binding in provider.list_cluster_role_bindings():
            if binding.role_name != self.settings.cluster_admin_role:
                continue
            if binding.name.startswith(self.settings.system_binding_prefix):
                continue
            results.append(self.failed(
                "K8S-RBAC-001", binding.name,
                f"ClusterRoleBinding '{binding.name}' grants {self.settings.cluster_admin_role}",
            ))

        return results
