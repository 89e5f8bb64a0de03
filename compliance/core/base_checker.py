"""
Base class for compliance checkers.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..policies import get_policy
from .exceptions import ResourceQueryError
from .models import CheckOptions, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


@dataclass
class SubCheckOutcome:
    """
    Результат одной под-проверки: (results, optional error).

    В общий список попадают только results; ошибка логируется и дальше
    не передаётся.
    """

    results: List[CheckResult] = field(default_factory=list)
    error: Optional[ResourceQueryError] = None


class BaseChecker(ABC):
    """
    Базовый класс для всех checkers.

    Предоставляет:
    - Шаблон метода run(options)
    - Создание CheckResult из каталога правил
    - Изоляцию ошибок под-проверок (SubCheckOutcome)
    - Логирование

    Состояния между вызовами run() нет: соединение с провайдером
    открывается и закрывается внутри одного вызова.
    """

    def __init__(self, name: str):
        """
        Args:
            name: Имя checker'а (для логирования)
        """
        self.name = name
        self.logger = logging.getLogger(f"compliance.{name}")

    def run(self, options: CheckOptions) -> List[CheckResult]:
        """
        Запустить проверку.

        Returns:
            Плоский список результатов в порядке генерации
        """
        self.logger.info(f"Starting {self.name}...")
        start_time = time.perf_counter()

        results = self._check(options)

        duration_ms = (time.perf_counter() - start_time) * 1000
        failed = sum(1 for r in results if r.status == CheckStatus.FAILED)
        self.logger.info(
            f"Completed {self.name}: "
            f"{len(results)} results, "
            f"failed={failed}, "
            f"duration={duration_ms:.2f}ms"
        )
        return results

    @abstractmethod
    def _check(self, options: CheckOptions) -> List[CheckResult]:
        """
        Выполнить проверку (должен быть реализован в подклассах).

        Returns:
            Список результатов
        """
        pass

    def run_sub_check(self, label: str, func: Callable[..., List[CheckResult]], *args) -> SubCheckOutcome:
        """
        Выполнить под-проверку, поглотив ResourceQueryError.

        Args:
            label: Имя под-проверки (для логов)
            func: Функция, возвращающая список результатов
        """
        try:
            return SubCheckOutcome(results=func(*args))
        except ResourceQueryError as e:
            self.logger.warning(f"{self.name}: skipping {label}: {e}")
            return SubCheckOutcome(error=e)

    def create_result(
        self,
        rule_id: str,
        status: CheckStatus,
        resource: str,
        message: str,
    ) -> CheckResult:
        """
        Создать CheckResult по записи каталога.

        Имя, категория и severity берутся из каталога, поэтому все
        результаты одного rule_id имеют одинаковую severity. Remediation
        заполняется только для failed.

        Raises:
            KeyError: rule_id отсутствует в каталоге
        """
        policy = get_policy(rule_id)
        return CheckResult(
            rule_id=policy.id,
            rule_name=policy.name,
            category=policy.category,
            severity=policy.severity,
            status=status,
            resource=resource,
            message=message,
            remediation=policy.remediation if status == CheckStatus.FAILED else "",
        )

    def failed(self, rule_id: str, resource: str, message: str) -> CheckResult:
        return self.create_result(rule_id, CheckStatus.FAILED, resource, message)

    def passed(self, rule_id: str, resource: str, message: str) -> CheckResult:
        return self.create_result(rule_id, CheckStatus.PASSED, resource, message)
