"""Wrapper @throttle: cache stale-while-revalidate com coalescência de chamadas."""

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, overload

from .config import ThrottleConfig
from .keys import DefaultKeyBuilder
from .protocols import KeyBuilder
from .reporting import HitRateCounter, HitRateReporter, HitRateStats, NoOpHitRateHandler
from .retry import RetryEngine
from .store import LRUTTLStore
from .validators import validate_producer

logger = logging.getLogger(__name__)


class ThrottledFunction:
    """Wrapper para produtores assíncronos com cache e throttling.

    Cada instância possui duas tabelas independentes:

    - pending: a task em andamento (ou recém-concluída) por chave,
      expira após ``cache_refresh_period``. Enquanto existir, novas
      chamadas não disparam o produtor.
    - results: o último resultado de sucesso por chave, expira após
      ``cache_max_age``. Enquanto existir, é devolvido imediatamente,
      mesmo com um refresh em andamento.

    Chamadas concorrentes para a mesma chave aguardam a mesma task, de
    modo que o produtor é chamado uma única vez. A task pendente é
    gravada antes da primeira suspensão da chamada que a criou; como
    tudo roda num único event loop, nenhum lock é necessário.

    Uma task nunca é cancelada pelo wrapper: cada waiter aguarda através
    de ``asyncio.shield``, e ``clear_cache()`` apenas esvazia as tabelas.

    Attributes:
        config: Configuração efetiva
    """

    def __init__(
        self,
        producer: Callable[..., Awaitable[Any]],
        config: ThrottleConfig | None = None,
        key_builder: KeyBuilder | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        validate_producer(producer)
        # Preserva metadados da função original (sem copiar __dict__)
        functools.update_wrapper(self, producer, updated=())

        self.config = config or ThrottleConfig()
        self._producer = producer
        self._key_builder = key_builder or DefaultKeyBuilder(prefix=self.config.key_prefix)
        self._pending: LRUTTLStore[asyncio.Future[Any]] = LRUTTLStore(
            ttl=self.config.cache_refresh_period,
            max_items=self.config.max_cached_items,
            clock=clock,
            name="pending",
        )
        self._results: LRUTTLStore[Any] = LRUTTLStore(
            ttl=self.config.cache_max_age,
            max_items=self.config.max_cached_items,
            clock=clock,
            name="results",
        )
        self._retry = RetryEngine(
            producer,
            self._results,
            retry_count=self.config.retry_count,
            retry_delay=self.config.retry_delay,
            retry_jitter=self.config.retry_jitter,
            sleep=sleep,
        )
        self._counter = HitRateCounter()
        self._reporter: HitRateReporter | None = None
        if self.config.hit_rate_report_period is not None:
            self._reporter = HitRateReporter(
                self._counter,
                self.config.hit_rate_report_handler or NoOpHitRateHandler(),
                self.config.hit_rate_report_period,
            )
        self._generation = 0
        self._in_flight: set[asyncio.Future[Any]] = set()

    def __repr__(self) -> str:
        name = getattr(self._producer, "__qualname__", repr(self._producer))
        return f"<ThrottledFunction {name} pending={len(self._pending)} results={len(self._results)}>"

    def __get__(self, obj: Any, _objtype: type | None = None) -> "ThrottledFunction | BoundThrottledMethod":
        """Descriptor protocol para suporte a métodos."""
        if obj is None:
            return self
        return BoundThrottledMethod(self, obj)

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Chama o produtor (ou reaproveita o cache) para os argumentos.

        Raises:
            CacheKeyError: Se os argumentos não puderem virar chave
            Exception: O erro do produtor, quando os retries acabam e
                não existe resultado válido em cache
        """
        return await self._invoke(args, kwargs, args)

    async def _invoke(self, key_args: tuple[Any, ...], kwargs: dict[str, Any], call_args: tuple[Any, ...]) -> Any:
        """Executa a chamada; ``key_args`` exclui o self de métodos."""
        key = self._key_builder.build_key(key_args, kwargs)
        if self._reporter is not None:
            self._reporter.ensure_started()

        pending = self._pending.get(key)
        passed_through = not _is_usable(pending)
        if passed_through:
            pending = self._dispatch(key, call_args, kwargs)
        self._counter.record_call(passed_through)

        cached = self._results.get_entry(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached.value

        logger.debug(f"Aguardando chamada em andamento para: {key}")
        return await asyncio.shield(pending)

    def _dispatch(self, key: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> asyncio.Future[Any]:
        """Cria a task do produtor e registra como pendente (sem suspender)."""
        logger.debug(f"Disparando produtor para: {key}")
        task = asyncio.ensure_future(
            self._retry.attempt(key, args, kwargs, write_result=self._result_writer())
        )
        # Referência forte até o fim: o event loop guarda apenas referências fracas
        self._in_flight.add(task)
        task.add_done_callback(functools.partial(self._on_settled, key))
        self._pending.set(key, task)
        return task

    def _result_writer(self) -> Callable[[str, Any], None]:
        if not self.config.isolate_clear:
            return self._results.set

        generation = self._generation

        def write(key: str, value: Any) -> None:
            if generation != self._generation:
                logger.debug(f"Descartando resultado anterior ao clear_cache para: {key}")
                return
            self._results.set(key, value)

        return write

    def _on_settled(self, key: str, task: asyncio.Future[Any]) -> None:
        """Libera a chave quando a task falha, para que a próxima chamada tente de novo."""
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is None:
            return
        if not task.cancelled():
            # Consome a exceção mesmo sem waiters
            logger.debug(f"Chamada ao produtor falhou para '{key}': {task.exception()!r}")
        entry = self._pending.get_entry(key)
        if entry is not None and entry.value is task:
            self._pending.delete(key)

    def clear_cache(self) -> None:
        """Esvazia as tabelas de pendentes e de resultados.

        Chamadas já disparadas continuam; por padrão o resultado delas
        ainda é gravado quando chegar (use ``isolate_clear=True`` para
        descartá-lo).
        """
        self._pending.reset()
        self._results.reset()
        self._generation += 1
        logger.debug("Cache limpo")

    @property
    def stats(self) -> HitRateStats:
        """Contadores acumulados desde o último tick do reporter."""
        return self._counter.snapshot()

    @property
    def in_flight_count(self) -> int:
        """Número de chamadas ao produtor ainda em andamento."""
        return len(self._in_flight)

    @property
    def reporter(self) -> HitRateReporter | None:
        return self._reporter

    def close(self) -> None:
        """Para o hit-rate reporter (se configurado)."""
        if self._reporter is not None:
            self._reporter.stop()

    async def aclose(self) -> None:
        """Para o hit-rate reporter e aguarda o término da task."""
        if self._reporter is not None:
            await self._reporter.aclose()

    async def __aenter__(self) -> "ThrottledFunction":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class BoundThrottledMethod:
    """Wrapper para métodos bound (com self).

    O self não entra na chave: todas as instâncias compartilham as
    tabelas e os contadores do mesmo ThrottledFunction.
    """

    def __init__(self, wrapper: ThrottledFunction, instance: Any) -> None:
        self._wrapper = wrapper
        self._instance = instance

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Executa o método com o instance bound."""
        return await self._wrapper._invoke(args, kwargs, (self._instance, *args))

    def clear_cache(self) -> None:
        """Limpa o cache compartilhado do método."""
        self._wrapper.clear_cache()

    @property
    def stats(self) -> HitRateStats:
        return self._wrapper.stats


def _is_usable(pending: asyncio.Future[Any] | None) -> bool:
    """Uma task pendente que falhou ou foi cancelada conta como ausente."""
    if pending is None:
        return False
    if not pending.done():
        return True
    return not pending.cancelled() and pending.exception() is None


@overload
def throttle(
    *,
    config: ThrottleConfig | None = None,
    key_builder: KeyBuilder | None = None,
    **options: Any,
) -> Callable[[Callable[..., Awaitable[Any]]], ThrottledFunction]: ...


@overload
def throttle(
    func: Callable[..., Awaitable[Any]],
    *,
    config: ThrottleConfig | None = None,
    key_builder: KeyBuilder | None = None,
    **options: Any,
) -> ThrottledFunction: ...


def throttle(
    func: Callable[..., Awaitable[Any]] | None = None,
    *,
    config: ThrottleConfig | None = None,
    key_builder: KeyBuilder | None = None,
    **options: Any,
) -> ThrottledFunction | Callable[[Callable[..., Awaitable[Any]]], ThrottledFunction]:
    """Envolve um produtor assíncrono com cache, coalescência e retry.

    Pode ser usado como função ou como decorator, com ou sem parênteses.
    Opções nomeadas sobrescrevem os valores de ``config``.

    Args:
        func: Produtor a envolver (quando usado sem parênteses)
        config: Configuração base (default: ThrottleConfig())
        key_builder: Construtor de chaves customizado
        **options: Campos de ThrottleConfig (cache_refresh_period,
            cache_max_age, max_cached_items, retry_count, retry_delay,
            retry_jitter, hit_rate_report_period, hit_rate_report_handler,
            isolate_clear, key_prefix)

    Returns:
        ThrottledFunction (ou decorator que o cria)

    Raises:
        ValidationError: Se alguma opção for inválida
        TypeError: Se alguma opção for desconhecida

    Example:
        ```python
        @throttle(cache_refresh_period=10.0, retry_count=2)
        async def get_rates(currency: str) -> dict:
            return await client.fetch(currency)

        rates = await get_rates("BRL")
        get_rates.clear_cache()
        ```
    """
    resolved = (config or ThrottleConfig()).with_overrides(**options)

    def decorator(fn: Callable[..., Awaitable[Any]]) -> ThrottledFunction:
        return ThrottledFunction(fn, config=resolved, key_builder=key_builder)

    if func is not None:
        # Usado sem parênteses: @throttle ou throttle(fn, ...)
        return decorator(func)

    # Usado com parênteses: @throttle(...)
    return decorator
