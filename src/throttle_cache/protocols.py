"""Protocols para extensibilidade da biblioteca.

Define interfaces que permitem implementações customizadas de:
- KeyBuilder: Geração de chaves de cache
- HitRateHandler: Consumo das estatísticas de hit-rate
"""

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .reporting import HitRateStats


class KeyBuilder(Protocol):
    """Protocol para construtores de chaves de cache.

    Implemente este protocol para customizar como as chaves
    são geradas a partir dos argumentos da chamada.

    Example:
        ```python
        class UserIdKeyBuilder:
            def build_key(self, args, kwargs) -> str:
                return f"user:{kwargs.get('user_id', args[0])}"
        ```
    """

    def build_key(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        """Constrói chave de cache.

        Args:
            args: Argumentos posicionais
            kwargs: Argumentos nomeados

        Returns:
            Chave de cache como string
        """
        ...


class HitRateHandler(Protocol):
    """Protocol para receptores das estatísticas de hit-rate.

    O handler é chamado a cada período configurado com o snapshot
    acumulado desde o tick anterior. Pode ser síncrono ou retornar
    um awaitable.

    Example:
        ```python
        def print_stats(stats: HitRateStats) -> None:
            print(f"hit ratio: {stats.hit_ratio:.2%}")
        ```
    """

    def __call__(self, stats: "HitRateStats") -> None | Awaitable[None]:
        """Recebe o snapshot de estatísticas.

        Args:
            stats: Chamadas totais e chamadas repassadas ao produtor
        """
        ...
