"""Configuração de fixtures para testes."""

import pytest


class FakeClock:
    """Relógio manual para controlar TTLs nos testes."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Relógio manual começando em t=1000s."""
    return FakeClock()


@pytest.fixture
def sample_payload() -> dict:
    """Argumento estruturado de exemplo."""
    return {"user_id": 123, "filters": {"active": True, "tags": ["a", "b"]}}
