"""
Resource providers.

Contains:
- KubernetesProvider - снимки pods/namespaces/NetworkPolicies/ClusterRoleBindings
- DockerProvider - inspect контейнеров и образов
"""
