"""Testes para o construtor de chaves."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest

from throttle_cache.exceptions import CacheKeyError, ValidationError
from throttle_cache.keys import DefaultKeyBuilder, canonical_bytes


class Color(Enum):
    RED = "red"


@dataclass
class Point:
    x: int
    y: int


class Plain:
    def __init__(self, name: str) -> None:
        self.name = name


class TestCanonicalBytes:
    """Testes para canonical_bytes."""

    def test_dict_order_does_not_matter(self) -> None:
        """Ordem dos campos não deve afetar os bytes."""
        assert canonical_bytes({"a": 1, "b": 2}) == canonical_bytes({"b": 2, "a": 1})

    def test_nested_dict_order_does_not_matter(self, sample_payload: dict) -> None:
        """Ordem dos campos aninhados não deve afetar os bytes."""
        reordered = {"filters": {"tags": ["a", "b"], "active": True}, "user_id": 123}
        assert canonical_bytes(sample_payload) == canonical_bytes(reordered)

    def test_list_order_matters(self) -> None:
        """Ordem de listas é significativa."""
        assert canonical_bytes([1, 2]) != canonical_bytes([2, 1])

    def test_set_order_does_not_matter(self) -> None:
        """Sets devem ser ordenados."""
        assert canonical_bytes({3, 1, 2}) == canonical_bytes({2, 3, 1})

    def test_tuple_equals_list(self) -> None:
        """Tuplas e listas são ambas sequências."""
        assert canonical_bytes((1, 2)) == canonical_bytes([1, 2])

    def test_bool_differs_from_int(self) -> None:
        """True e 1 não devem colidir."""
        assert canonical_bytes(True) != canonical_bytes(1)

    def test_supported_scalar_types(self) -> None:
        """Tipos datetime, Decimal, UUID e Enum devem ser aceitos."""
        value = [
            datetime(2024, 1, 2, 3, 4, 5),
            date(2024, 1, 2),
            Decimal("1.50"),
            UUID("12345678-1234-5678-1234-567812345678"),
            Color.RED,
            b"raw",
            bytearray(b"raw"),
        ]
        assert isinstance(canonical_bytes(value), bytes)

    def test_dataclass_and_plain_objects(self) -> None:
        """Dataclasses e objetos com __dict__ usam seus campos."""
        assert canonical_bytes(Point(1, 2)) == canonical_bytes({"y": 2, "x": 1})
        assert canonical_bytes(Plain("ana")) == canonical_bytes({"name": "ana"})

    def test_unsupported_type_raises(self) -> None:
        """Tipos não suportados devem lançar CacheKeyError."""
        with pytest.raises(CacheKeyError):
            canonical_bytes(object())

    def test_callable_raises(self) -> None:
        """Funções não podem fazer parte da chave."""
        with pytest.raises(CacheKeyError):
            canonical_bytes(lambda: None)

    def test_huge_int_is_supported(self) -> None:
        """Inteiros fora do range nativo do msgpack geram bytes distintos."""
        assert canonical_bytes(2**70) == canonical_bytes(2**70)
        assert canonical_bytes(2**70) != canonical_bytes(2**70 + 1)
        assert canonical_bytes(-(2**70)) != canonical_bytes(2**70)

    def test_huge_int_differs_from_its_string(self) -> None:
        """2**70 e "1180591620717411303424" não devem colidir."""
        assert canonical_bytes(2**70) != canonical_bytes(str(2**70))

    def test_int_range_boundaries(self) -> None:
        """Limites de 64 bits continuam no formato nativo."""
        assert isinstance(canonical_bytes(2**64 - 1), bytes)
        assert isinstance(canonical_bytes(-(2**63)), bytes)
        assert canonical_bytes(2**64) != canonical_bytes(2**64 - 1)


class TestDefaultKeyBuilder:
    """Testes para DefaultKeyBuilder."""

    def test_same_args_produce_same_key(self) -> None:
        """Mesmos argumentos devem produzir mesma chave."""
        builder = DefaultKeyBuilder()

        assert builder.build_key((1, "test"), {}) == builder.build_key((1, "test"), {})

    def test_different_args_produce_different_keys(self) -> None:
        """Argumentos diferentes devem produzir chaves diferentes."""
        builder = DefaultKeyBuilder()

        assert builder.build_key((1,), {}) != builder.build_key((2,), {})

    def test_kwargs_order_does_not_affect_key(self) -> None:
        """Ordem dos kwargs não deve afetar a chave."""
        builder = DefaultKeyBuilder()

        key1 = builder.build_key((), {"a": 1, "b": 2})
        key2 = builder.build_key((), {"b": 2, "a": 1})

        assert key1 == key2

    def test_positional_and_keyword_are_distinct(self) -> None:
        """f(1) e f(x=1) geram chaves diferentes."""
        builder = DefaultKeyBuilder()

        assert builder.build_key((1,), {}) != builder.build_key((), {"x": 1})

    def test_digest_has_fixed_length(self) -> None:
        """Chave sem prefixo é um SHA-256 hexadecimal."""
        builder = DefaultKeyBuilder()

        key = builder.build_key(({"big": "x" * 10_000},), {})

        assert len(key) == 64
        int(key, 16)

    def test_prefix(self) -> None:
        """Deve ter formato prefix:digest."""
        builder = DefaultKeyBuilder(prefix="rates")

        key = builder.build_key((1,), {})

        prefix, digest = key.split(":")
        assert prefix == "rates"
        assert len(digest) == 64
        assert builder.prefix == "rates"

    def test_without_digest(self) -> None:
        """digest=False deve usar a forma canônica em base64."""
        builder = DefaultKeyBuilder(digest=False)

        assert builder.build_key((1,), {}) != DefaultKeyBuilder().build_key((1,), {})
        assert builder.build_key(({"a": 1, "b": 2},), {}) == builder.build_key(({"b": 2, "a": 1},), {})

    def test_empty_prefix_raises_error(self) -> None:
        """Prefixo vazio deve lançar erro."""
        with pytest.raises(ValidationError):
            DefaultKeyBuilder(prefix="  ")
