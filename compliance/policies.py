"""
Built-in compliance policy catalog.

Каталог фиксирован: правила не задаются пользователем. Таблица строится один
раз при импорте и больше не меняется.
"""

from typing import Dict, List, Optional

from .core.models import Policy, Severity


_POLICIES = (
    # === Kubernetes Security ===
    Policy(
        id="K8S-SEC-001",
        name="No Privileged Containers",
        category="Kubernetes Security",
        severity=Severity.CRITICAL,
        description="Containers should not run in privileged mode as it grants full host access",
        remediation="Set securityContext.privileged to false",
    ),
    Policy(
        id="K8S-SEC-002",
        name="Run as Non-Root",
        category="Kubernetes Security",
        severity=Severity.HIGH,
        description="Containers should run as non-root user to limit potential damage",
        remediation="Set securityContext.runAsNonRoot to true and specify runAsUser",
    ),
    Policy(
        id="K8S-SEC-003",
        name="Read-Only Root Filesystem",
        category="Kubernetes Security",
        severity=Severity.MEDIUM,
        description="Container root filesystem should be read-only to prevent modifications",
        remediation="Set securityContext.readOnlyRootFilesystem to true",
    ),
    Policy(
        id="K8S-SEC-004",
        name="No Host Network",
        category="Kubernetes Security",
        severity=Severity.HIGH,
        description="Pods should not use the host network namespace",
        remediation="Set hostNetwork to false",
    ),
    Policy(
        id="K8S-SEC-005",
        name="No Host PID",
        category="Kubernetes Security",
        severity=Severity.HIGH,
        description="Pods should not share the host PID namespace",
        remediation="Set hostPID to false",
    ),

    # === Kubernetes Best Practices ===
    Policy(
        id="K8S-IMG-001",
        name="No Latest Tag",
        category="Kubernetes Best Practices",
        severity=Severity.MEDIUM,
        description="Images should use specific tags instead of 'latest'",
        remediation="Use specific version tags for container images",
    ),
    Policy(
        id="K8S-PROBE-001",
        name="Liveness Probe",
        category="Kubernetes Best Practices",
        severity=Severity.MEDIUM,
        description="Containers should have liveness probes for automatic restart",
        remediation="Add livenessProbe to container spec",
    ),
    Policy(
        id="K8S-PROBE-002",
        name="Readiness Probe",
        category="Kubernetes Best Practices",
        severity=Severity.MEDIUM,
        description="Containers should have readiness probes for traffic management",
        remediation="Add readinessProbe to container spec",
    ),

    # === Kubernetes Resources ===
    Policy(
        id="K8S-RES-001",
        name="CPU Limits",
        category="Kubernetes Resources",
        severity=Severity.MEDIUM,
        description="Containers should have CPU limits to prevent resource starvation",
        remediation="Set resources.limits.cpu",
    ),
    Policy(
        id="K8S-RES-002",
        name="Memory Limits",
        category="Kubernetes Resources",
        severity=Severity.HIGH,
        description="Containers should have memory limits to prevent OOM issues",
        remediation="Set resources.limits.memory",
    ),
    Policy(
        id="K8S-RES-003",
        name="CPU Requests",
        category="Kubernetes Resources",
        severity=Severity.LOW,
        description="Containers should request CPU so the scheduler can place them correctly",
        remediation="Set resources.requests.cpu",
    ),
    Policy(
        id="K8S-RES-004",
        name="Memory Requests",
        category="Kubernetes Resources",
        severity=Severity.LOW,
        description="Containers should request memory so the scheduler can place them correctly",
        remediation="Set resources.requests.memory",
    ),

    # === Kubernetes Network ===
    Policy(
        id="K8S-NET-001",
        name="Network Policies",
        category="Kubernetes Network",
        severity=Severity.MEDIUM,
        description="Namespaces should have NetworkPolicies to restrict traffic",
        remediation="Define NetworkPolicies for the namespace",
    ),

    # === Kubernetes RBAC ===
    Policy(
        id="K8S-RBAC-001",
        name="Cluster Admin Bindings",
        category="Kubernetes RBAC",
        severity=Severity.HIGH,
        description="Avoid granting cluster-admin role to non-system users",
        remediation="Use more restrictive roles",
    ),

    # === Docker Security ===
    Policy(
        id="DOCKER-SEC-001",
        name="No Privileged Containers",
        category="Docker Security",
        severity=Severity.CRITICAL,
        description="Containers should not run in privileged mode",
        remediation="Remove --privileged flag",
    ),
    Policy(
        id="DOCKER-SEC-002",
        name="Non-Root User",
        category="Docker Security",
        severity=Severity.HIGH,
        description="Containers should run as non-root user",
        remediation="Use USER directive in Dockerfile or --user flag",
    ),
    Policy(
        id="DOCKER-SEC-003",
        name="No Host Network",
        category="Docker Security",
        severity=Severity.HIGH,
        description="Containers should not use host network",
        remediation="Use bridge or custom network",
    ),
    Policy(
        id="DOCKER-SEC-004",
        name="No Host PID",
        category="Docker Security",
        severity=Severity.HIGH,
        description="Containers should not share host PID namespace",
        remediation="Remove --pid=host flag",
    ),
    Policy(
        id="DOCKER-SEC-005",
        name="No Dangerous Capabilities",
        category="Docker Security",
        severity=Severity.HIGH,
        description="Containers should not have dangerous Linux capabilities",
        remediation="Remove unnecessary --cap-add flags",
    ),
    Policy(
        id="DOCKER-SEC-006",
        name="Read-Only Root Filesystem",
        category="Docker Security",
        severity=Severity.MEDIUM,
        description="Container root filesystem should be read-only",
        remediation="Use --read-only flag",
    ),

    # === Docker Resources ===
    Policy(
        id="DOCKER-RES-001",
        name="Memory Limits",
        category="Docker Resources",
        severity=Severity.MEDIUM,
        description="Containers should have memory limits",
        remediation="Set --memory flag",
    ),
    Policy(
        id="DOCKER-RES-002",
        name="CPU Limits",
        category="Docker Resources",
        severity=Severity.LOW,
        description="Containers should have CPU limits",
        remediation="Set --cpus or --cpu-quota flag",
    ),

    # === Docker Configuration ===
    Policy(
        id="DOCKER-CFG-001",
        name="Restart Policy",
        category="Docker Configuration",
        severity=Severity.LOW,
        description="Containers should have a restart policy",
        remediation="Set --restart=unless-stopped",
    ),
    Policy(
        id="DOCKER-CFG-002",
        name="Health Check",
        category="Docker Configuration",
        severity=Severity.MEDIUM,
        description="Containers should have health checks",
        remediation="Add HEALTHCHECK in Dockerfile or --health-cmd",
    ),

    # === Docker Images ===
    Policy(
        id="DOCKER-IMG-001",
        name="No Latest Tag",
        category="Docker Images",
        severity=Severity.MEDIUM,
        description="Images should use specific tags",
        remediation="Use specific version tags",
    ),
    Policy(
        id="DOCKER-IMG-002",
        name="Image Size",
        category="Docker Images",
        severity=Severity.LOW,
        description="Images should not be excessively large",
        remediation="Use multi-stage builds or smaller base images",
    ),
    Policy(
        id="DOCKER-IMG-003",
        name="Non-Root User in Image",
        category="Docker Images",
        severity=Severity.MEDIUM,
        description="Images should define a non-root user",
        remediation="Add USER directive in Dockerfile",
    ),
    Policy(
        id="DOCKER-IMG-004",
        name="Privileged Ports",
        category="Docker Images",
        severity=Severity.LOW,
        description="Images should not expose ports below 1024",
        remediation="Use ports > 1024",
    ),

    # === File Compliance: Kubernetes manifests ===
    Policy(
        id="FILE-K8S-001",
        name="No Latest Tag in Manifests",
        category="File Compliance",
        severity=Severity.MEDIUM,
        description="Kubernetes manifests should use specific image tags",
        remediation="Use specific version tags",
    ),
    Policy(
        id="FILE-K8S-002",
        name="Resource Limits in Manifests",
        category="File Compliance",
        severity=Severity.MEDIUM,
        description="Kubernetes manifests should define resource limits",
        remediation="Add resources.limits",
    ),
    Policy(
        id="FILE-K8S-003",
        name="Security Context in Manifests",
        category="File Compliance",
        severity=Severity.HIGH,
        description="Kubernetes manifests should define security context",
        remediation="Add securityContext with runAsNonRoot: true",
    ),
    Policy(
        id="FILE-K8S-004",
        name="Liveness Probe in Manifests",
        category="File Compliance",
        severity=Severity.MEDIUM,
        description="Kubernetes manifests should define liveness probes",
        remediation="Add livenessProbe",
    ),

    # === File Compliance: Dockerfiles ===
    Policy(
        id="FILE-DOCKER-001",
        name="Use COPY Instead of ADD",
        category="File Compliance",
        severity=Severity.LOW,
        description="Dockerfiles should use COPY for local files",
        remediation="Replace ADD with COPY for local files",
    ),
    Policy(
        id="FILE-DOCKER-002",
        name="Clean Up Downloads",
        category="File Compliance",
        severity=Severity.LOW,
        description="Downloaded files should be cleaned up in the same layer",
        remediation="Combine download and cleanup in single RUN command",
    ),
    Policy(
        id="FILE-DOCKER-003",
        name="USER in Dockerfile",
        category="File Compliance",
        severity=Severity.HIGH,
        description="Dockerfiles should define a non-root USER",
        remediation="Add USER directive",
    ),
    Policy(
        id="FILE-DOCKER-004",
        name="HEALTHCHECK in Dockerfile",
        category="File Compliance",
        severity=Severity.MEDIUM,
        description="Dockerfiles should define a HEALTHCHECK",
        remediation="Add HEALTHCHECK directive",
    ),
    Policy(
        id="FILE-DOCKER-005",
        name="Specific Base Image Tag",
        category="File Compliance",
        severity=Severity.MEDIUM,
        description="Dockerfile base images should use specific tags",
        remediation="Use specific version tag for base image",
    ),

    # === File Compliance: docker-compose ===
    Policy(
        id="FILE-COMPOSE-001",
        name="No Privileged in Compose",
        category="File Compliance",
        severity=Severity.CRITICAL,
        description="Docker Compose services should not be privileged",
        remediation="Remove privileged: true",
    ),
    Policy(
        id="FILE-COMPOSE-002",
        name="No Host Network in Compose",
        category="File Compliance",
        severity=Severity.HIGH,
        description="Docker Compose services should not use host network",
        remediation="Use bridge network",
    ),
    Policy(
        id="FILE-COMPOSE-003",
        name="Restart Policy in Compose",
        category="File Compliance",
        severity=Severity.LOW,
        description="Docker Compose services should define a restart policy",
        remediation="Add restart: unless-stopped",
    ),
    Policy(
        id="FILE-COMPOSE-004",
        name="Specific Image Tag in Compose",
        category="File Compliance",
        severity=Severity.MEDIUM,
        description="Docker Compose services should use specific image tags",
        remediation="Use specific image tag",
    ),
)


def _index(policies) -> Dict[str, Policy]:
    index: Dict[str, Policy] = {}
    for policy in policies:
        if policy.id in index:
            raise ValueError(f"Duplicate policy id in catalog: {policy.id}")
        index[policy.id] = policy
    return index


_BY_ID = _index(_POLICIES)


def all_policies() -> List[Policy]:
    """Получить все встроенные правила (стабильный порядок по доменам)."""
    return list(_POLICIES)


def get_policy(rule_id: str) -> Policy:
    """
    Найти правило по id.

    Raises:
        KeyError: правила нет в каталоге
    """
    return _BY_ID[rule_id]


def has_policy(rule_id: str) -> bool:
    return rule_id in _BY_ID


def policies_by_category(policies: Optional[List[Policy]] = None) -> Dict[str, List[Policy]]:
    """Сгруппировать правила по категории (в порядке каталога)."""
    grouped: Dict[str, List[Policy]] = {}
    for policy in (policies if policies is not None else _POLICIES):
        grouped.setdefault(policy.category, []).append(policy)
    return grouped


def filter_policies(
    category: Optional[str] = None,
    severity: Optional[Severity] = None,
) -> List[Policy]:
    """
    Отфильтровать каталог по категории и/или точному уровню серьёзности.

    Args:
        category: Категория (точное совпадение, без учёта регистра)
        severity: Уровень серьёзности

    Returns:
        Список правил в порядке каталога
    """
    result = []
    for policy in _POLICIES:
        if category and policy.category.lower() != category.strip().lower():
            continue
        if severity is not None and policy.severity != severity:
            continue
        result.append(policy)
    return result
