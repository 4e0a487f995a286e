"""Execução do produtor com retry e fallback para o último resultado válido."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

from .store import LRUTTLStore

logger = logging.getLogger(__name__)

ResultWriter = Callable[[str, Any], None]


class RetryEngine:
    """Executa uma chamada ao produtor com retries limitados.

    Em caso de falha, se existir um resultado não expirado para a chave,
    ele é devolvido e o erro é suprimido (stale-while-error). Caso
    contrário, aguarda ``retry_delay`` (mais um jitter aleatório opcional)
    e tenta novamente até esgotar ``retry_count``. O número total de
    chamadas ao produtor nunca passa de ``retry_count + 1``.

    Apenas ``Exception`` é tratada: ``asyncio.CancelledError`` e demais
    ``BaseException`` propagam imediatamente.

    Attributes:
        retry_count: Tentativas adicionais após a primeira falha
        retry_delay: Pausa constante entre tentativas (segundos)
        retry_jitter: Limite superior da pausa aleatória extra (segundos)
    """

    def __init__(
        self,
        producer: Callable[..., Awaitable[Any]],
        results: LRUTTLStore[Any],
        retry_count: int = 0,
        retry_delay: float = 0.2,
        retry_jitter: float = 0.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._producer = producer
        self._results = results
        self.retry_count = retry_count
        self.retry_delay = retry_delay
        self.retry_jitter = retry_jitter
        self._sleep = sleep

    def backoff_delay(self) -> float:
        """Calcula a pausa antes da próxima tentativa."""
        if self.retry_jitter > 0:
            return self.retry_delay + random.uniform(0, self.retry_jitter)
        return self.retry_delay

    async def attempt(
        self,
        key: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        retries_remaining: int | None = None,
        write_result: ResultWriter | None = None,
    ) -> Any:
        """Chama o produtor, aplicando retry e fallback.

        Args:
            key: Chave de cache da chamada
            args: Argumentos posicionais para o produtor
            kwargs: Argumentos nomeados para o produtor
            retries_remaining: Retries disponíveis (default: retry_count)
            write_result: Callback que grava o resultado (default: grava
                direto no store de resultados)

        Returns:
            Resultado do produtor ou o último resultado válido em cache

        Raises:
            Exception: O erro original do produtor, sem modificação, quando
                os retries acabam e não existe fallback
        """
        remaining = self.retry_count if retries_remaining is None else retries_remaining
        writer = write_result or self._results.set
        attempt_number = 0

        while True:
            attempt_number += 1
            try:
                result = await self._producer(*args, **kwargs)
            except Exception as e:
                cached = self._results.get_entry(key)
                if cached is not None:
                    logger.warning(f"Produtor falhou para '{key}', usando resultado em cache: {e!r}")
                    return cached.value

                if remaining <= 0:
                    logger.debug(f"Produtor falhou para '{key}' após {attempt_number} tentativa(s): {e!r}")
                    raise

                remaining -= 1
                delay = self.backoff_delay()
                logger.debug(
                    f"Produtor falhou para '{key}' (tentativa {attempt_number}), "
                    f"nova tentativa em {delay:.3f}s: {e!r}"
                )
                if delay > 0:
                    await self._sleep(delay)
                continue

            writer(key, result)
            return result
