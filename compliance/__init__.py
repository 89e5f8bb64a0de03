"""
DevOps Compliance Engine

Проверка инфраструктуры на соответствие правилам безопасности:
- Kubernetes ресурсы (pods, namespaces, RBAC)
- Docker контейнеры и образы
- Конфигурационные файлы (manifests, Dockerfile, docker-compose)

Отчёты: table, JSON, JUnit XML, HTML.

Usage:
    compliance check all
    compliance report files --path ./deploy -f junit -o results.xml
"""

__version__ = "1.0.0"
