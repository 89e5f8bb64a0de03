"""
Compliance orchestrator.

Features:
- Checker selection by target
- Sequential execution in a fixed order (cluster -> runtime -> files)
- Filtering, summary and score
- Exit code computation for CI
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .checkers.cluster_checker import ClusterChecker
from .checkers.file_checker import FileChecker
from .checkers.runtime_checker import RuntimeChecker
from .config import ComplianceSettings
from .core.base_checker import BaseChecker
from .core.models import CheckOptions, CheckResult, CheckStatus, Report, ReportSummary, Severity, Target
from .filters import filter_results
from .providers.docker_provider import DockerProvider
from .providers.kubernetes_provider import KubernetesProvider

logger = logging.getLogger(__name__)

BLOCKING_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)


def summarize(results: Iterable[CheckResult]) -> ReportSummary:
    """
    Посчитать сводку за один проход.

    score = passed / (total - skipped) * 100; 0.0 если знаменатель равен нулю.
    """
    total = passed = failed = skipped = 0
    for result in results:
        total += 1
        if result.status == CheckStatus.PASSED:
            passed += 1
        elif result.status == CheckStatus.FAILED:
            failed += 1
        elif result.status == CheckStatus.SKIPPED:
            skipped += 1

    evaluated = total - skipped
    score = passed / evaluated * 100 if evaluated > 0 else 0.0

    return ReportSummary(total=total, passed=passed, failed=failed, skipped=skipped, score=score)


def compute_exit_code(results: Iterable[CheckResult], fail_on_warn: bool = False) -> int:
    """
    Код выхода для CI.

    1 если есть failed critical/high, либо любой failed при fail_on_warn.
    """
    for result in results:
        if result.status != CheckStatus.FAILED:
            continue
        if fail_on_warn or result.severity in BLOCKING_SEVERITIES:
            return 1
    return 0


class ComplianceOrchestrator:
    """Оркестратор для выбора и запуска checkers."""

    def __init__(self, settings: ComplianceSettings, checkers: Optional[Dict[Target, BaseChecker]] = None):
        """
        Args:
            settings: Настройки
            checkers: Checkers по target (None = стандартные с реальными провайдерами)
        """
        self.settings = settings
        self.checkers = checkers if checkers is not None else self._default_checkers(settings)

    @staticmethod
    def _default_checkers(settings: ComplianceSettings) -> Dict[Target, BaseChecker]:
        return {
            Target.CLUSTER: ClusterChecker(
                lambda: KubernetesProvider(kubeconfig=settings.kubeconfig, context=settings.kube_context),
                settings,
            ),
            Target.RUNTIME: RuntimeChecker(
                lambda: DockerProvider(base_url=settings.docker_base_url, timeout=settings.docker_timeout),
                settings,
            ),
            Target.FILES: FileChecker(settings),
        }

    def checkers_for(self, target: Target) -> List[BaseChecker]:
        """Checkers для target в порядке запуска (all = cluster, runtime, files)."""
        if target == Target.ALL:
            order = (Target.CLUSTER, Target.RUNTIME, Target.FILES)
        else:
            order = (target,)
        return [self.checkers[t] for t in order if t in self.checkers]

    def run(self, target: Target, options: CheckOptions) -> List[CheckResult]:
        """
        Запустить checkers последовательно и отфильтровать результаты.

        Raises:
            ProviderConnectionError: Docker daemon недоступен (прерывает весь запуск)
        """
        checkers = self.checkers_for(target)
        logger.info(f"Running {len(checkers)} checkers sequentially...")

        results: List[CheckResult] = []
        for i, checker in enumerate(checkers, 1):
            logger.info(f"[{i}/{len(checkers)}] Running {checker.name}...")
            results.extend(checker.run(options))

        filtered = filter_results(results, options)
        if len(filtered) != len(results):
            logger.info(f"Filters removed {len(results) - len(filtered)} of {len(results)} results")

        return filtered

    def build_report(
        self,
        results: Iterable[CheckResult],
        title: Optional[str] = None,
        include_passed: bool = True,
        generated_at: Optional[datetime] = None,
    ) -> Report:
        """
        Собрать неизменяемый Report.

        Args:
            results: Результаты (уже отфильтрованные)
            title: Заголовок (None = из настроек)
            include_passed: False = убрать passed до подсчёта сводки
            generated_at: Время генерации (None = сейчас, UTC)
        """
        rows = [r for r in results if include_passed or r.status != CheckStatus.PASSED]
        return Report(
            title=title or self.settings.report_title,
            generated_at=generated_at or datetime.now(timezone.utc),
            summary=summarize(rows),
            results=tuple(rows),
        )
