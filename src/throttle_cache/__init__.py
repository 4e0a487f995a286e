"""throttle-cache: cache e throttling em memória para funções assíncronas.

Envolve um produtor assíncrono (ex.: uma chamada de rede) com
stale-while-revalidate, coalescência de chamadas concorrentes,
retry com backoff constante, eviction LRU e relatório de hit-rate.

Uso básico:
    ```python
    from throttle_cache import throttle

    @throttle(cache_refresh_period=60.0, cache_max_age=300.0)
    async def get_user(user_id: int) -> dict:
        return await api.fetch_user(user_id)

    user = await get_user(123)

    # Limpeza
    get_user.clear_cache()
    ```

Com relatório de hit-rate:
    ```python
    from throttle_cache import LoggingHitRateHandler, throttle

    fetch = throttle(
        fetch_prices,
        hit_rate_report_period=30.0,
        hit_rate_report_handler=LoggingHitRateHandler(name="prices"),
    )
    ...
    await fetch.aclose()
    ```
"""

__version__ = "0.1.0"

# Configuração
from .config import ThrottleConfig

# Exceções
from .exceptions import CacheKeyError, ThrottleError, ValidationError

# Geração de chaves
from .keys import DefaultKeyBuilder, canonical_bytes

# Protocols (para extensibilidade)
from .protocols import HitRateHandler, KeyBuilder

# Hit-rate
from .reporting import (
    HitRateCounter,
    HitRateReporter,
    HitRateStats,
    InMemoryHitRateHandler,
    LoggingHitRateHandler,
    NoOpHitRateHandler,
    OpenTelemetryHitRateHandler,
)

# Retry
from .retry import RetryEngine

# Store
from .store import LRUTTLStore, StoreEntry

# Wrapper principal
from .throttle import BoundThrottledMethod, ThrottledFunction, throttle

__all__ = [
    # Wrapper principal
    "throttle",
    "ThrottledFunction",
    "BoundThrottledMethod",
    # Configuração
    "ThrottleConfig",
    # Geração de chaves
    "DefaultKeyBuilder",
    "canonical_bytes",
    # Store
    "LRUTTLStore",
    "StoreEntry",
    # Retry
    "RetryEngine",
    # Hit-rate
    "HitRateStats",
    "HitRateCounter",
    "HitRateReporter",
    "NoOpHitRateHandler",
    "LoggingHitRateHandler",
    "InMemoryHitRateHandler",
    "OpenTelemetryHitRateHandler",
    # Exceções
    "ThrottleError",
    "CacheKeyError",
    "ValidationError",
    # Protocols
    "KeyBuilder",
    "HitRateHandler",
]
