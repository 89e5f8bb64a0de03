"""
Kubernetes resource provider.

Wraps the official `kubernetes` client and converts API objects into typed
snapshots. Each provider instance owns its own ApiClient (no global config),
opened in __enter__ and closed in __exit__.
"""

import logging
from typing import Any, Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.utils import parse_quantity

from ..core.exceptions import ProviderConnectionError, ResourceQueryError
from ..core.snapshots import ContainerSpec, PodSnapshot, RoleBindingSnapshot

logger = logging.getLogger(__name__)


class KubernetesProvider:
    """Провайдер кластерных ресурсов поверх kubernetes client."""

    def __init__(self, kubeconfig: Optional[str] = None, context: Optional[str] = None):
        """
        Args:
            kubeconfig: Путь к kubeconfig (None = $KUBECONFIG или ~/.kube/config)
            context: Контекст kubeconfig (None = текущий)
        """
        self.kubeconfig = kubeconfig
        self.context = context
        self._api_client: Optional[client.ApiClient] = None

    def __enter__(self) -> "KubernetesProvider":
        self._api_client = self._connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._api_client is not None:
            try:
                self._api_client.close()
            except Exception as e:
                logger.warning(f"Error closing Kubernetes client: {e}")
            self._api_client = None

    def _connect(self) -> client.ApiClient:
        """Создать ApiClient: сначала kubeconfig, затем in-cluster."""
        try:
            return config.new_client_from_config(config_file=self.kubeconfig, context=self.context)
        except (ConfigException, OSError) as kube_error:
            logger.debug(f"kubeconfig not usable ({kube_error}), trying in-cluster config")

        try:
            configuration = client.Configuration()
            config.load_incluster_config(client_configuration=configuration)
            return client.ApiClient(configuration)
        except ConfigException as e:
            raise ProviderConnectionError("Kubernetes API", str(e)) from e

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            raise ProviderConnectionError("Kubernetes API", "provider is not open")
        return self._api_client

    # === Queries ===

    def list_pods(self, namespace: str = "") -> List[PodSnapshot]:
        """Список pods (namespace="" = все namespaces)."""
        core = client.CoreV1Api(self.api_client)
        try:
            if namespace:
                pods = core.list_namespaced_pod(namespace)
            else:
                pods = core.list_pod_for_all_namespaces()
        except ApiException as e:
            raise ResourceQueryError("pods", f"{e.status} {e.reason}") from e
        except Exception as e:
            raise ResourceQueryError("pods", str(e)) from e

        return [self._pod_snapshot(pod) for pod in (pods.items or [])]

    def list_namespaces(self) -> List[str]:
        core = client.CoreV1Api(self.api_client)
        try:
            namespaces = core.list_namespace()
        except ApiException as e:
            raise ResourceQueryError("namespaces", f"{e.status} {e.reason}") from e
        except Exception as e:
            raise ResourceQueryError("namespaces", str(e)) from e

        return [ns.metadata.name for ns in (namespaces.items or [])]

    def count_network_policies(self, namespace: str) -> int:
        networking = client.NetworkingV1Api(self.api_client)
        try:
            policies = networking.list_namespaced_network_policy(namespace)
        except ApiException as e:
            raise ResourceQueryError(f"networkpolicies in {namespace}", f"{e.status} {e.reason}") from e
        except Exception as e:
            raise ResourceQueryError(f"networkpolicies in {namespace}", str(e)) from e

        return len(policies.items or [])

    def list_cluster_role_bindings(self) -> List[RoleBindingSnapshot]:
        rbac = client.RbacAuthorizationV1Api(self.api_client)
        try:
            bindings = rbac.list_cluster_role_binding()
        except ApiException as e:
            raise ResourceQueryError("clusterrolebindings", f"{e.status} {e.reason}") from e
        except Exception as e:
            raise ResourceQueryError("clusterrolebindings", str(e)) from e

        return [
            RoleBindingSnapshot(
                name=binding.metadata.name,
                role_name=binding.role_ref.name if binding.role_ref else "",
            )
            for binding in (bindings.items or [])
        ]

    # === Conversion ===

    def _pod_snapshot(self, pod: Any) -> PodSnapshot:
        spec = pod.spec
        containers = [self._container_spec(c) for c in (spec.containers or [])] if spec else []
        return PodSnapshot(
            namespace=pod.metadata.namespace or "",
            name=pod.metadata.name or "",
            host_network=bool(spec and spec.host_network),
            host_pid=bool(spec and spec.host_pid),
            containers=containers,
        )

    def _container_spec(self, container: Any) -> ContainerSpec:
        sc = container.security_context
        resources = container.resources
        limits: Dict[str, Any] = (resources.limits or {}) if resources else {}
        requests: Dict[str, Any] = (resources.requests or {}) if resources else {}

        return ContainerSpec(
            name=container.name,
            image=container.image or "",
            privileged=sc.privileged if sc else None,
            run_as_non_root=sc.run_as_non_root if sc else None,
            read_only_root_filesystem=sc.read_only_root_filesystem if sc else None,
            has_liveness_probe=container.liveness_probe is not None,
            has_readiness_probe=container.readiness_probe is not None,
            cpu_limit=_non_zero_quantity(limits.get("cpu")),
            memory_limit=_non_zero_quantity(limits.get("memory")),
            cpu_request=_non_zero_quantity(requests.get("cpu")),
            memory_request=_non_zero_quantity(requests.get("memory")),
        )


def _non_zero_quantity(value: Any) -> Optional[str]:
    """Вернуть quantity как строку, либо None если она не задана или равна нулю."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        if parse_quantity(text) == 0:
            return None
    except ValueError:
        # Нераспознанная quantity: считаем заданной
        pass
    return text
