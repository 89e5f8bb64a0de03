"""
Typed resource snapshots returned by resource providers.

Checkers never touch SDK objects directly: providers convert Kubernetes and
Docker API payloads into these plain dataclasses.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol


# === Kubernetes ===

@dataclass(frozen=True)
class ContainerSpec:
    """Контейнер внутри pod spec."""

    name: str
    image: str = ""
    privileged: Optional[bool] = None
    run_as_non_root: Optional[bool] = None
    read_only_root_filesystem: Optional[bool] = None
    has_liveness_probe: bool = False
    has_readiness_probe: bool = False
    # Пустая строка/None = квота не задана (или равна нулю)
    cpu_limit: Optional[str] = None
    memory_limit: Optional[str] = None
    cpu_request: Optional[str] = None
    memory_request: Optional[str] = None


@dataclass(frozen=True)
class PodSnapshot:
    """Pod с контейнерами и host-namespace флагами."""

    namespace: str
    name: str
    host_network: bool = False
    host_pid: bool = False
    containers: List[ContainerSpec] = field(default_factory=list)

    @property
    def locator(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class RoleBindingSnapshot:
    """ClusterRoleBinding: имя и роль, на которую ссылается."""

    name: str
    role_name: str


# === Docker ===

@dataclass(frozen=True)
class ContainerInspection:
    """Результат docker inspect для контейнера."""

    name: str
    privileged: bool = False
    userns_mode: str = ""
    user: str = ""
    network_mode: str = ""
    pid_mode: str = ""
    cap_add: List[str] = field(default_factory=list)
    memory: int = 0
    cpu_quota: int = 0
    nano_cpus: int = 0
    restart_policy: str = ""
    healthcheck_test: List[str] = field(default_factory=list)
    readonly_rootfs: bool = False


@dataclass(frozen=True)
class ImageInspection:
    """Результат docker image inspect."""

    name: str
    repo_tags: List[str] = field(default_factory=list)
    size: int = 0
    user: str = ""
    exposed_ports: List[str] = field(default_factory=list)  # "80/tcp", "8080/udp"


# === Provider contracts ===

class ClusterProvider(Protocol):
    """Источник снимков кластерных ресурсов (открывается через with)."""

    def __enter__(self) -> "ClusterProvider": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    def list_pods(self, namespace: str = "") -> List[PodSnapshot]: ...

    def list_namespaces(self) -> List[str]: ...

    def count_network_policies(self, namespace: str) -> int: ...

    def list_cluster_role_bindings(self) -> List[RoleBindingSnapshot]: ...


class RuntimeProvider(Protocol):
    """Источник inspect-записей контейнерного runtime (открывается через with)."""

    def __enter__(self) -> "RuntimeProvider": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    def list_container_ids(self) -> List[str]: ...

    def inspect_container(self, container_id: str) -> ContainerInspection: ...

    def inspect_image(self, image_name: str) -> ImageInspection: ...
