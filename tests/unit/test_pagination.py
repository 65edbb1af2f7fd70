"""
Unit tests for pagination and sort parsing.
"""

import base64

import pytest

from sqlaccess.exceptions import BadRequestError
from sqlaccess.pagination import (
    CollectionParams,
    PageMeta,
    PageParams,
    SortClause,
    decode_cursor,
    encode_cursor,
    paginate,
    parse_sort,
    process_collection_params,
)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


class TestCursor:
    """Tests for the cursor codec."""

    def test_encode(self) -> None:
        assert encode_cursor(3) == _b64("num:3")

    def test_decode(self) -> None:
        assert decode_cursor(_b64("num:12")) == 12

    @pytest.mark.parametrize(
        "cursor",
        [
            _b64("num:0"),
            _b64("num:01"),
            _b64("page:2"),
            _b64("num:2x"),
            "not base64!!",
            base64.b64encode(b"\xff\xfe").decode(),
        ],
    )
    def test_invalid_cursor_raises_bad_request(self, cursor: str) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            decode_cursor(cursor)
        assert f"'{cursor}'" in str(exc_info.value)
        assert exc_info.value.status == 400


class TestPaginate:
    """Tests for paginate."""

    def test_first_page_at_default_size(self) -> None:
        fragment, meta = paginate(None)
        assert fragment.limit == "0,25"
        assert meta == PageMeta(size=25, next_cursor=encode_cursor(2))

    def test_third_page_of_hundred(self) -> None:
        fragment, meta = paginate(PageParams(size=100, cursor=encode_cursor(3)))
        assert fragment.limit == "200,100"
        assert meta.prev_cursor == encode_cursor(3)
        assert meta.next_cursor == encode_cursor(4)

    @pytest.mark.parametrize("size", [None, 0, -5])
    def test_non_positive_size_uses_default(self, size: int | None) -> None:
        fragment, meta = paginate(PageParams(size=size), default_page_size=10)
        assert fragment.limit == "0,10"
        assert meta.size == 10

    def test_empty_cursor_is_first_page(self) -> None:
        fragment, meta = paginate(PageParams(cursor=""))
        assert fragment.limit == "0,25"
        assert meta.prev_cursor is None

    def test_invalid_cursor_raises(self) -> None:
        with pytest.raises(BadRequestError):
            paginate(PageParams(cursor=_b64("num:-1")))

    def test_end_of_collection_clears_next_cursor(self) -> None:
        _, meta = paginate(None)
        assert meta.end_of_collection().next_cursor is None
        assert meta.end_of_collection().size == meta.size


class TestParseSort:
    """Tests for parse_sort."""

    @pytest.mark.parametrize(
        "sort,expected",
        [
            ("name", [("name", "ASC")]),
            ("-name", [("name", "DESC")]),
            ("+name", [("name", "ASC")]),
            ("-name,+type", [("name", "DESC"), ("type", "ASC")]),
            ("-name,type", [("name", "DESC"), ("type", "ASC")]),
            ("  -name ,  type  ", [("name", "DESC"), ("type", "ASC")]),
            ("", []),
        ],
    )
    def test_parses_clauses(self, sort: str, expected: list[SortClause]) -> None:
        assert parse_sort(sort) == expected

    def test_grammar_violation_raises(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            parse_sort("na\nme")
        assert "Invalid sort clause" in str(exc_info.value)


class TestProcessCollectionParams:
    """Tests for process_collection_params."""

    def test_defaults(self) -> None:
        result = process_collection_params("users", None)
        assert result.fragment.limit == "0,25"
        assert result.fragment.sort == ()
        assert result.meta.sort is None

    def test_sort_is_rendered_and_echoed(self) -> None:
        params = CollectionParams(page=PageParams(size=5), sort="-createdMs, name")
        result = process_collection_params("users", params)
        assert result.fragment.sort == ("`createdMs` DESC", "`name` ASC")
        assert result.fragment.limit == "0,5"
        assert result.meta.sort == "-createdMs, name"

    def test_sort_fields_are_sanitized(self) -> None:
        params = CollectionParams(sort="-na`me--")
        result = process_collection_params("users", params)
        assert result.fragment.sort == ("`name` DESC",)

    def test_custom_sort_parser_receives_type(self) -> None:
        calls: list[tuple[str, str]] = []

        def parser(resource_type: str, sort: str) -> list[SortClause]:
            calls.append((resource_type, sort))
            return [("createdMs", "DESC")]

        result = process_collection_params(
            "orders", CollectionParams(sort="newest"), 25, parser
        )
        assert calls == [("orders", "newest")]
        assert result.fragment.sort == ("`createdMs` DESC",)

    def test_from_mapping(self) -> None:
        params = CollectionParams.from_mapping(
            {"__pg": {"size": 10, "cursor": encode_cursor(2)}, "__sort": "-name"}
        )
        assert params == CollectionParams(
            page=PageParams(size=10, cursor=encode_cursor(2)), sort="-name"
        )
        assert CollectionParams.from_mapping({}) == CollectionParams()
