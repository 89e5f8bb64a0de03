"""
Post-hoc result filtering (skip / only / minimum severity).
"""

from typing import Iterable, List, Optional

from .core.models import CheckOptions, CheckResult, Severity


def apply_filters(
    results: Iterable[CheckResult],
    skip_rules: Iterable[str] = (),
    only_rules: Iterable[str] = (),
    min_severity: Optional[Severity] = None,
) -> List[CheckResult]:
    """
    Отфильтровать результаты.

    Порядок применения: skip-list, затем only-list (skip побеждает), затем
    минимальная severity. Функция чистая: входной список не меняется,
    порядок сохраняется.

    Args:
        results: Результаты проверок
        skip_rules: rule_id, которые нужно исключить
        only_rules: Если не пуст, оставить только эти rule_id
        min_severity: Отбросить результаты с severity ниже этой

    Returns:
        Новый список результатов
    """
    skip = set(skip_rules)
    only = set(only_rules)

    if not skip and not only and min_severity is None:
        return list(results)

    filtered = []
    for result in results:
        if result.rule_id in skip:
            continue
        if only and result.rule_id not in only:
            continue
        if min_severity is not None and result.severity.rank < min_severity.rank:
            continue
        filtered.append(result)

    return filtered


def filter_results(results: Iterable[CheckResult], options: CheckOptions) -> List[CheckResult]:
    """apply_filters с параметрами из CheckOptions."""
    if not options.has_filters:
        return list(results)
    return apply_filters(
        results,
        skip_rules=options.skip_rules,
        only_rules=options.only_rules,
        min_severity=options.min_severity,
    )
