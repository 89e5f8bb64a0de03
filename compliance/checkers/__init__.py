"""
Compliance checkers.

Contains:
- ClusterChecker - проверка ресурсов Kubernetes
- RuntimeChecker - проверка контейнеров и образов Docker
- FileChecker - проверка манифестов, Dockerfile и docker-compose
"""
