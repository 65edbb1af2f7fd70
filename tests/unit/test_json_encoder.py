"""
Unit tests for JSON serialization of SQL values.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from sqlaccess.serialization import json_dumps, json_loads
from sqlaccess.types import UNSET


class TestJsonDumps:
    """Tests for json_dumps."""

    def test_bytes_become_hex(self) -> None:
        assert json_dumps({"id": b"\x01\xab"}) == '{"id": "01ab"}'
        assert json_dumps([bytearray(b"\x02")]) == '["02"]'

    def test_uuid(self) -> None:
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert json_dumps(value) == '"12345678-1234-5678-1234-567812345678"'

    def test_dates(self) -> None:
        assert json_dumps(date(2024, 1, 2)) == '"2024-01-02"'
        assert json_dumps(datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)) == (
            '"2024-01-02T03:04:05+00:00"'
        )

    def test_decimal_keeps_precision(self) -> None:
        assert json_dumps(Decimal("1.10")) == '"1.10"'

    def test_sets_are_sorted(self) -> None:
        assert json_loads(json_dumps({"b", "a"})) == ["a", "b"]

    def test_unset(self) -> None:
        assert json_dumps({"id": UNSET}) == '{"id": "UNSET"}'

    def test_key_order_is_preserved(self) -> None:
        assert json_dumps({"b": 1, "a": 2}) != json_dumps({"a": 2, "b": 1})

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(TypeError):
            json_dumps(object())
