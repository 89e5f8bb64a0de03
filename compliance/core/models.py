"""
Core data models for compliance engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(Enum):
    """Уровень серьёзности правила."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Числовой ранг для сравнения: low=1 ... critical=4."""
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """
        Разобрать строку в Severity (без учёта регистра).

        Raises:
            ValueError: неизвестный уровень
        """
        normalized = (value or "").strip().lower()
        for severity in cls:
            if severity.value == normalized:
                return severity
        valid = ", ".join(s.value for s in cls)
        raise ValueError(f"Unknown severity '{value}' (valid: {valid})")

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class CheckStatus(Enum):
    """Статус проверки одного правила для одного ресурса."""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class Target(Enum):
    """Домен ресурсов, на который направлен запуск."""
    CLUSTER = "cluster"
    RUNTIME = "runtime"
    FILES = "files"
    ALL = "all"

    @classmethod
    def parse(cls, value: str) -> "Target":
        """
        Разобрать target из строки CLI (с алиасами k8s/docker/file).

        Raises:
            ValueError: неизвестный target
        """
        normalized = (value or "").strip().lower()
        if normalized in _TARGET_ALIASES:
            return _TARGET_ALIASES[normalized]
        valid = ", ".join(t.value for t in cls)
        raise ValueError(f"Unknown target: {value} (valid targets: {valid})")


_TARGET_ALIASES = {
    "cluster": Target.CLUSTER,
    "k8s": Target.CLUSTER,
    "kubernetes": Target.CLUSTER,
    "runtime": Target.RUNTIME,
    "docker": Target.RUNTIME,
    "files": Target.FILES,
    "file": Target.FILES,
    "all": Target.ALL,
}


@dataclass(frozen=True)
class Policy:
    """Запись каталога правил (read-only шаблон)."""

    id: str
    name: str
    category: str
    severity: Severity
    description: str
    remediation: str

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "severity": self.severity.value,
            "description": self.description,
            "remediation": self.remediation,
        }


@dataclass(frozen=True)
class CheckResult:
    """Результат проверки одного правила (finding)."""

    rule_id: str
    rule_name: str
    category: str
    severity: Severity
    status: CheckStatus
    resource: str  # namespace/pod, container name или путь к файлу
    message: str
    remediation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON (remediation опускается, если пуст)."""
        data = {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "category": self.category,
            "severity": self.severity.value,
            "status": self.status.value,
            "resource": self.resource,
            "message": self.message,
        }
        if self.remediation:
            data["remediation"] = self.remediation
        return data


@dataclass
class CheckOptions:
    """Параметры одного запуска проверок."""

    namespace: str = ""
    image: str = ""
    path: str = "."
    skip_rules: List[str] = field(default_factory=list)
    only_rules: List[str] = field(default_factory=list)
    min_severity: Optional[Severity] = None

    def __post_init__(self):
        """Normalize rule lists and severity."""
        self.skip_rules = [r.strip() for r in self.skip_rules if r and r.strip()]
        self.only_rules = [r.strip() for r in self.only_rules if r and r.strip()]

        if isinstance(self.min_severity, str):
            self.min_severity = Severity.parse(self.min_severity) if self.min_severity.strip() else None

    @property
    def has_filters(self) -> bool:
        return bool(self.skip_rules or self.only_rules or self.min_severity)


@dataclass(frozen=True)
class ReportSummary:
    """Сводка отчёта."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "score": self.score,
        }


@dataclass(frozen=True)
class Report:
    """Итоговый отчёт (строится один раз, далее неизменяем)."""

    title: str
    generated_at: datetime
    summary: ReportSummary
    results: Tuple[CheckResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        generated_at = self.generated_at
        if generated_at.tzinfo is None:
            generated_at = generated_at.replace(tzinfo=timezone.utc)

        return {
            "title": self.title,
            "generated_at": generated_at.isoformat(),
            "summary": self.summary.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }

    def results_by_category(self) -> Dict[str, List[CheckResult]]:
        """Сгруппировать результаты по категории (в порядке первого появления)."""
        grouped: Dict[str, List[CheckResult]] = {}
        for result in self.results:
            grouped.setdefault(result.category, []).append(result)
        return grouped
