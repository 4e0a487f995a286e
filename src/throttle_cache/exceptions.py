"""Exceções do throttle-cache.

Erros do produtor nunca são embrulhados: eles passam pelo wrapper sem
modificação. As classes abaixo cobrem apenas erros do próprio wrapper.
"""


class ThrottleError(Exception):
    """Erro base para o throttle-cache."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class CacheKeyError(ThrottleError):
    """Argumentos da chamada não podem ser convertidos em chave de cache."""

    pass


class ValidationError(ThrottleError, ValueError):
    """Parâmetro de configuração inválido.

    Herda de ValueError para que código existente que captura
    ValueError continue funcionando.
    """

    pass
