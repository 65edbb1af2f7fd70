"""
Unit tests for read request values and legacy call-shape disambiguation.
"""

import logging
from unittest.mock import MagicMock

import pytest

from sqlaccess.pagination import CollectionParams, PageParams
from sqlaccess.requests import (
    Constraint,
    Filter,
    GetRequest,
    is_collection_params,
    is_filter,
    is_logger,
)
from sqlaccess.types import UNSET


@pytest.fixture
def log() -> logging.Logger:
    return logging.getLogger("tests.requests")


class TestFilter:
    """Tests for Filter."""

    def test_active_fields_skip_unset_and_tag(self) -> None:
        f = Filter(fields={"_t": "filter", "name": "Jo", "age": UNSET, "deletedMs": None})
        assert f.active_fields() == [("name", "Jo"), ("deletedMs", None)]

    def test_from_mapping_drops_tag(self) -> None:
        assert Filter.from_mapping({"_t": "filter", "a": 1}) == Filter(fields={"a": 1})

    def test_of(self) -> None:
        assert Filter.of(a=1).fields == {"a": 1}


class TestConstraint:
    """Tests for Constraint."""

    def test_complete(self) -> None:
        assert Constraint.of(id=1).is_complete

    def test_unset_is_incomplete(self) -> None:
        assert not Constraint.of(id=UNSET).is_complete

    def test_none_is_complete(self) -> None:
        assert Constraint.of(id=None).is_complete


class TestGetRequest:
    """Tests for GetRequest."""

    def test_filter_and_constraint_are_exclusive(self) -> None:
        with pytest.raises(ValueError):
            GetRequest(filter=Filter(), constraint=Constraint())

    def test_mode(self) -> None:
        assert GetRequest().mode == "collection"
        assert GetRequest(filter=Filter()).mode == "collection"
        assert GetRequest(constraint=Constraint.of(id=1)).mode == "constraint"


class TestFromArgs:
    """Tests for GetRequest.from_args over every legacy call shape."""

    def test_logger_only(self, log: logging.Logger) -> None:
        assert GetRequest.from_args(log) == GetRequest(logger=log)

    def test_params_and_logger(self, log: logging.Logger) -> None:
        request = GetRequest.from_args({"__pg": {"size": 5}}, log)
        assert request == GetRequest(
            params=CollectionParams(page=PageParams(size=5)), logger=log
        )

    def test_empty_params_and_logger(self, log: logging.Logger) -> None:
        request = GetRequest.from_args({}, log)
        assert request.params == CollectionParams()
        assert request.filter is None
        assert request.constraint is None

    def test_filter_and_logger(self, log: logging.Logger) -> None:
        request = GetRequest.from_args({"_t": "filter", "status": "active"}, log)
        assert request == GetRequest(filter=Filter(fields={"status": "active"}), logger=log)

    def test_filter_params_and_logger(self, log: logging.Logger) -> None:
        request = GetRequest.from_args({"_t": "filter"}, {"__sort": "-name"}, log)
        assert request.filter == Filter(fields={})
        assert request.params == CollectionParams(sort="-name")
        assert request.logger is log

    def test_constraint_and_logger(self, log: logging.Logger) -> None:
        request = GetRequest.from_args({"id": "abcde"}, log)
        assert request == GetRequest(constraint=Constraint(fields={"id": "abcde"}), logger=log)
        assert not request.throw

    def test_constraint_logger_and_throw(self, log: logging.Logger) -> None:
        request = GetRequest.from_args({"id": "abcde"}, log, True)
        assert request.constraint == Constraint(fields={"id": "abcde"})
        assert request.throw is True
        assert request.logger is log

    def test_typed_values_pass_through(self, log: logging.Logger) -> None:
        params = CollectionParams(sort="name")
        request = GetRequest.from_args(Filter.of(a=1), params, log)
        assert request.filter == Filter.of(a=1)
        assert request.params is params

    def test_no_args(self) -> None:
        assert GetRequest.from_args() == GetRequest()


class TestPredicates:
    """Tests for the shape predicates."""

    def test_is_logger(self, log: logging.Logger) -> None:
        assert is_logger(log)
        assert is_logger(logging.LoggerAdapter(log, {}))
        assert is_logger(MagicMock())
        assert not is_logger({"id": 1})
        assert not is_logger(None)

    def test_is_filter(self) -> None:
        assert is_filter(Filter())
        assert is_filter({"_t": "filter"})
        assert not is_filter({"_t": "other"})
        assert not is_filter({"id": 1})

    def test_is_collection_params(self) -> None:
        assert is_collection_params(CollectionParams())
        assert is_collection_params({})
        assert is_collection_params({"__sort": "name"})
        assert not is_collection_params({"id": 1})
        assert not is_collection_params(None)
