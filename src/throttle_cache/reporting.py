"""Estatísticas de hit-rate e reporter periódico.

O reporter é uma task asyncio que, a cada período, entrega ao handler
o snapshot ``{total_calls, passed_through_calls}`` acumulado desde o
tick anterior e zera os contadores.

Handlers disponíveis:
- NoOpHitRateHandler: descarta (default)
- LoggingHitRateHandler: loga via ``logging``
- InMemoryHitRateHandler: guarda o histórico (útil em testes)
- OpenTelemetryHitRateHandler: exporta counters OpenTelemetry
"""

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from opentelemetry import metrics as otel_metrics

from .constants import DEFAULT_METER_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HitRateStats:
    """Snapshot das chamadas desde o último tick."""

    total_calls: int = 0
    passed_through_calls: int = 0

    @property
    def cached_calls(self) -> int:
        """Chamadas atendidas sem disparar o produtor."""
        return self.total_calls - self.passed_through_calls

    @property
    def hit_ratio(self) -> float:
        return self.cached_calls / self.total_calls if self.total_calls > 0 else 0.0

    def as_dict(self) -> dict[str, int]:
        return {"total_calls": self.total_calls, "passed_through_calls": self.passed_through_calls}


class HitRateCounter:
    """Contadores de chamadas de uma instância do wrapper."""

    def __init__(self) -> None:
        self.total_calls = 0
        self.passed_through_calls = 0

    def record_call(self, passed_through: bool) -> None:
        self.total_calls += 1
        if passed_through:
            self.passed_through_calls += 1

    def snapshot(self) -> HitRateStats:
        return HitRateStats(total_calls=self.total_calls, passed_through_calls=self.passed_through_calls)

    def reset(self) -> None:
        self.total_calls = 0
        self.passed_through_calls = 0

    def drain(self) -> HitRateStats:
        """Retorna o snapshot atual e zera os contadores."""
        stats = self.snapshot()
        self.reset()
        return stats


class NoOpHitRateHandler:
    """Handler que não faz nada (default)."""

    def __call__(self, stats: HitRateStats) -> None:
        pass


class LoggingHitRateHandler:
    """Handler que loga as estatísticas de cada período."""

    def __init__(self, name: str = "throttled", log_level: int = logging.INFO) -> None:
        self._name = name
        self._log_level = log_level

    def __call__(self, stats: HitRateStats) -> None:
        logger.log(
            self._log_level,
            "Hit rate for '%s': %d calls, %d passed through (%.1f%% served from cache)",
            self._name,
            stats.total_calls,
            stats.passed_through_calls,
            stats.hit_ratio * 100,
        )


class InMemoryHitRateHandler:
    """Handler que guarda o histórico de snapshots.

    Attributes:
        max_samples: Máximo de snapshots mantidos
    """

    def __init__(self, max_samples: int = 1000) -> None:
        self._max_samples = max_samples
        self.history: list[HitRateStats] = []

    def __call__(self, stats: HitRateStats) -> None:
        self.history.append(stats)
        if len(self.history) > self._max_samples:
            del self.history[: len(self.history) - self._max_samples]

    @property
    def last(self) -> HitRateStats | None:
        return self.history[-1] if self.history else None

    def totals(self) -> HitRateStats:
        """Soma de todos os snapshots guardados."""
        return HitRateStats(
            total_calls=sum(s.total_calls for s in self.history),
            passed_through_calls=sum(s.passed_through_calls for s in self.history),
        )


class OpenTelemetryHitRateHandler:
    """Handler que exporta as estatísticas como counters OpenTelemetry.

    Métricas exportadas:
    - throttle.calls (counter): Número total de chamadas
    - throttle.passed_through_calls (counter): Chamadas que dispararam o produtor

    Example:
        ```python
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry import metrics

        metrics.set_meter_provider(MeterProvider())

        fetch = throttle(
            fetch_rates,
            hit_rate_report_period=30.0,
            hit_rate_report_handler=OpenTelemetryHitRateHandler(name="rates"),
        )
        ```
    """

    def __init__(self, name: str = "throttled", meter_name: str = DEFAULT_METER_NAME) -> None:
        """Inicializa counters OpenTelemetry.

        Args:
            name: Valor do atributo ``function`` em cada ponto
            meter_name: Nome do meter para agrupar métricas
        """
        meter = otel_metrics.get_meter(meter_name)
        self._attributes = {"function": name}
        self._calls_counter = meter.create_counter(
            "throttle.calls",
            description="Número de chamadas ao wrapper",
            unit="1",
        )
        self._passed_through_counter = meter.create_counter(
            "throttle.passed_through_calls",
            description="Número de chamadas repassadas ao produtor",
            unit="1",
        )

    def __call__(self, stats: HitRateStats) -> None:
        self._calls_counter.add(stats.total_calls, self._attributes)
        self._passed_through_counter.add(stats.passed_through_calls, self._attributes)


class HitRateReporter:
    """Task periódica que entrega snapshots ao handler.

    A task só pode ser criada dentro de um event loop em execução;
    ``ensure_started`` é chamado pelo wrapper a cada chamada e inicia a
    task na primeira vez. Erros do handler são logados e não
    interrompem o ciclo.
    """

    def __init__(
        self,
        counter: HitRateCounter,
        handler: Callable[[HitRateStats], Any],
        period: float,
    ) -> None:
        self._counter = counter
        self._handler = handler
        self._period = period
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def period(self) -> float:
        return self._period

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_started(self) -> None:
        """Inicia a task se ainda não estiver rodando.

        Raises:
            RuntimeError: Se não houver event loop em execução
        """
        if self._closed or self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="throttle-hit-rate-reporter")
        logger.debug(f"Hit-rate reporter iniciado (período {self._period}s)")

    def stop(self) -> None:
        """Cancela a task. O reporter não reinicia depois de parado."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def aclose(self) -> None:
        """Cancela a task e aguarda seu término."""
        self.stop()
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._period)
            await self.report()

    async def report(self) -> HitRateStats:
        """Entrega o snapshot atual ao handler e zera os contadores."""
        stats = self._counter.drain()
        try:
            outcome = self._handler(stats)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Erro no hit-rate handler: {e!r}")
        return stats
