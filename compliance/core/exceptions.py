"""
Error taxonomy for compliance engine.

Findings are never errors: a failed rule is a CheckResult, not an exception.
"""


class ComplianceError(Exception):
    """Базовая ошибка движка проверок."""
    pass


class ProviderConnectionError(ComplianceError):
    """Провайдер ресурсов недоступен (kube API, Docker daemon)."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"Cannot connect to {provider}: {reason}")


class ResourceQueryError(ComplianceError):
    """Один конкретный запрос к провайдеру завершился ошибкой."""

    def __init__(self, resource_kind: str, reason: str):
        self.resource_kind = resource_kind
        self.reason = reason
        super().__init__(f"Failed to query {resource_kind}: {reason}")


class ManifestParseError(ComplianceError):
    """Файл не читается или не разбирается."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot parse {path}: {reason}")
