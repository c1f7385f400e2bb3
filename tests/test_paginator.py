"""Tests for DataTablesPaginator.

Tests:
- Order translation, including filter_order fan-out and base ordering
- Limit/page translation and its error cases
- Column search filter derivation
- paginate() against the in-memory engine
"""

from __future__ import annotations

import pytest

from dtbridge.config import PaginatorSettings
from dtbridge.exceptions import InvalidPagingError
from dtbridge.models import OrderSpec, PagingMetadata
from dtbridge.paginator import DataTablesPaginator, clean_search_value
from tests.helpers import dt_column


def _order_request(*columns, order):
    return {"columns": list(columns), "order": order}


# =============================================================================
# translate_order
# =============================================================================


class TestTranslateOrder:
    """Tests for translate_order()."""

    def test_single_column(self, request_data):
        order = DataTablesPaginator().translate_order(request_data)
        assert order == [OrderSpec(field="title", direction="asc")]

    def test_not_orderable_is_skipped(self):
        request = _order_request(
            dt_column("title", orderable="false"), order=[{"column": "0", "dir": "asc"}]
        )
        assert DataTablesPaginator().translate_order(request) == []

    def test_only_exact_true_is_orderable(self):
        request = _order_request(dt_column("title", orderable="1"), order=[{"column": "0", "dir": "asc"}])
        assert DataTablesPaginator().translate_order(request) == []

    def test_unknown_column_is_skipped(self):
        request = _order_request(dt_column("title"), order=[{"column": "5", "dir": "asc"}])
        assert DataTablesPaginator().translate_order(request) == []

    def test_malformed_column_entry_is_skipped(self):
        request = {"columns": ["title"], "order": [{"column": 0}]}
        paginator = DataTablesPaginator()
        assert paginator.translate_order(request) == []
        assert paginator.derive_search_filters(request) == {}
        assert paginator.translate_limits(request) == (0, 1)

    def test_column_without_data_is_skipped(self):
        request = _order_request(dt_column(None), order=[{"column": "0", "dir": "asc"}])
        assert DataTablesPaginator().translate_order(request) == []

    def test_invalid_direction_is_skipped(self):
        request = _order_request(dt_column("title"), order=[{"column": "0", "dir": "sideways"}])
        assert DataTablesPaginator().translate_order(request) == []

    def test_direction_is_case_insensitive(self):
        request = _order_request(dt_column("title"), order=[{"column": "0", "dir": "DESC"}])
        assert DataTablesPaginator().translate_order(request) == [OrderSpec(field="title", direction="desc")]

    def test_filter_order_fans_out(self):
        """A logical column sorts by each mapped field in the same direction."""
        paginator = DataTablesPaginator(filter_order={"author": ["last_name", "first_name"]})
        request = _order_request(dt_column("author"), order=[{"column": "0", "dir": "desc"}])

        assert paginator.translate_order(request) == [
            OrderSpec(field="last_name", direction="desc"),
            OrderSpec(field="first_name", direction="desc"),
        ]

    def test_multiple_entries_keep_request_order(self):
        request = _order_request(
            dt_column("title"),
            dt_column("views"),
            order=[{"column": "1", "dir": "desc"}, {"column": "0", "dir": "asc"}],
        )
        assert DataTablesPaginator().translate_order(request) == [
            OrderSpec(field="views", direction="desc"),
            OrderSpec(field="title", direction="asc"),
        ]

    def test_later_entry_replaces_direction_in_place(self):
        request = _order_request(
            dt_column("title"),
            dt_column("views"),
            order=[
                {"column": "0", "dir": "asc"},
                {"column": "1", "dir": "asc"},
                {"column": "0", "dir": "desc"},
            ],
        )
        assert DataTablesPaginator().translate_order(request) == [
            OrderSpec(field="title", direction="desc"),
            OrderSpec(field="views", direction="asc"),
        ]

    def test_base_order_comes_first(self):
        request = _order_request(dt_column("title"), order=[{"column": "0", "dir": "asc"}])
        order = DataTablesPaginator().translate_order(request, {"order": {"pinned": "DESC"}})
        assert order == [
            OrderSpec(field="pinned", direction="desc"),
            OrderSpec(field="title", direction="asc"),
        ]

    def test_base_order_as_pairs(self):
        order = DataTablesPaginator().translate_order({}, {"order": [("a", "asc"), {"field": "b"}]})
        assert order == [OrderSpec(field="a"), OrderSpec(field="b")]

    def test_filter_order_from_settings(self):
        settings = PaginatorSettings(filter_order={"author": ["surname"]})
        paginator = DataTablesPaginator(settings=settings)
        request = _order_request(dt_column("author"), order=[{"column": "0", "dir": "asc"}])
        assert paginator.translate_order(request) == [OrderSpec(field="surname")]


# =============================================================================
# translate_limits
# =============================================================================


class TestTranslateLimits:
    """Tests for translate_limits()."""

    @pytest.mark.parametrize(
        ("start", "length", "expected"),
        [
            ("0", "10", (10, 1)),
            ("10", "10", (10, 2)),
            ("25", "10", (10, 3)),
            ("0", "0", (0, 1)),
            ("0", "-1", (0, 1)),
            ("30", "-1", (0, 1)),
            (None, None, (0, 1)),
        ],
    )
    def test_limits(self, start, length, expected):
        paginator = DataTablesPaginator()
        assert paginator.translate_limits({"start": start, "length": length}) == expected

    def test_zero_length_with_offset(self):
        with pytest.raises(InvalidPagingError) as exc_info:
            DataTablesPaginator().translate_limits({"start": "10", "length": "0"})
        assert exc_info.value.start == 10
        assert exc_info.value.length == 0

    def test_non_integer(self):
        with pytest.raises(InvalidPagingError) as exc_info:
            DataTablesPaginator().translate_limits({"start": "abc", "length": "10"})
        assert exc_info.value.start == "abc"

    def test_negative_start(self):
        with pytest.raises(InvalidPagingError):
            DataTablesPaginator().translate_limits({"start": "-10", "length": "10"})

    def test_negative_length(self):
        with pytest.raises(InvalidPagingError):
            DataTablesPaginator().translate_limits({"start": "0", "length": "-5"})

    def test_max_limit_caps_length(self):
        paginator = DataTablesPaginator(max_limit=50)
        assert paginator.translate_limits({"start": "0", "length": "500"}) == (50, 1)
        assert paginator.translate_limits({"start": "0", "length": "-1"}) == (50, 1)
        assert paginator.translate_limits({"start": "0", "length": "20"}) == (20, 1)

    def test_translate_combines_order_and_limits(self, request_data):
        query = DataTablesPaginator().translate(request_data)
        assert query.to_settings() == {"order": {"title": "asc"}, "limit": 10, "page": 1}


# =============================================================================
# Search filters
# =============================================================================


class TestSearchFilters:
    """Tests for derive_search_filters() and prepare_request_query_params()."""

    def test_clean_search_value(self):
        assert clean_search_value("(((abc)))") == "abc"
        assert clean_search_value("((()))") == ""
        assert clean_search_value(" plain ") == "plain"
        assert clean_search_value(None) == ""

    def test_derives_wrapped_terms(self):
        request = {"columns": [dt_column("title", search="(((alp)))"), dt_column("author", search="")]}
        assert DataTablesPaginator().derive_search_filters(request) == {"title": "alp"}

    def test_empty_wrapped_term_is_dropped(self):
        request = {"columns": [dt_column("title", search="((()))")]}
        assert DataTablesPaginator().derive_search_filters(request) == {}

    def test_not_searchable_is_skipped(self):
        request = {"columns": [dt_column("title", searchable="false", search="x")]}
        assert DataTablesPaginator().derive_search_filters(request) == {}

    def test_explicit_request_param_wins(self):
        request = {"title": "exact", "columns": [dt_column("title", search="(((x)))")]}
        assert DataTablesPaginator().derive_search_filters(request) == {}

    def test_explicit_query_param_wins(self):
        request = {"columns": [dt_column("title", search="(((x)))")]}
        paginator = DataTablesPaginator()
        assert paginator.derive_search_filters(request, {"title": "exact"}) == {}
        # an empty explicit value does not block derivation
        assert paginator.derive_search_filters(request, {"title": ""}) == {"title": "x"}

    def test_prepare_query_params_keeps_existing(self):
        request = {"columns": [dt_column("title", search="(((x)))"), dt_column("author", search="zoe")]}
        params = DataTablesPaginator().prepare_request_query_params(
            request, {"title": "", "page": "2"}
        )
        assert params == {"title": "", "page": "2", "author": "zoe"}


# =============================================================================
# paginate
# =============================================================================


class TestPaginate:
    """Tests for paginate() with the in-memory engine."""

    def test_orders_and_pages(self, articles, request_data):
        rows, paging = DataTablesPaginator().paginate(articles, request_data)
        assert [row["id"] for row in rows] == [1, 2, 4, 5, 3]
        assert paging.count == 5
        assert paging.page == 1

    def test_applies_search_filters(self, articles, request_data):
        request_data["columns"][2] = dt_column("author", search="(((zoe)))")
        rows, paging = DataTablesPaginator().paginate(articles, request_data)
        assert [row["id"] for row in rows] == [1, 3]
        assert paging.count == 2
        assert paging.total == 5

    def test_second_page(self, articles, request_data):
        request_data.update(start="2", length="2")
        rows, paging = DataTablesPaginator().paginate(articles, request_data)
        assert [row["id"] for row in rows] == [4, 5]
        assert paging.page == 2
        assert paging.prev_page and paging.next_page

    def test_explicit_request_filter_is_applied(self, articles, request_data):
        """An explicit parameter replaces the column search for that field."""
        request_data["title"] = "Alpha"
        request_data["columns"][1] = dt_column("title", search="(((beta)))")
        rows, paging = DataTablesPaginator().paginate(articles, request_data)
        assert [row["id"] for row in rows] == [1]
        assert paging.count == 1

    def test_explicit_and_derived_filters_combine(self, articles, request_data):
        request_data["columns"][1] = dt_column("title", search="(((eps)))")
        rows, paging = DataTablesPaginator().paginate(
            articles, request_data, query_params={"author": "adam"}
        )
        assert [row["id"] for row in rows] == [5]
        assert paging.count == 1

    def test_explicit_filter_needs_searchable_column(self, articles, request_data):
        request_data["views"] = "30"
        assert DataTablesPaginator().search_filters(request_data) == {}

    def test_custom_engine_receives_settings(self, request_data):
        calls = []

        def engine(source, settings, filters=None):
            calls.append((source, dict(settings), filters))
            return [], PagingMetadata(count=0)

        paginator = DataTablesPaginator(engine=engine)
        paginator.paginate("articles", request_data, settings={"contain": ["Authors"]})

        source, settings, filters = calls[0]
        assert source == "articles"
        assert settings == {
            "contain": ["Authors"],
            "order": {"title": "asc"},
            "limit": 10,
            "page": 1,
        }
        assert filters == {}

    def test_prepare_response(self, articles, request_data):
        paginator = DataTablesPaginator()
        rows, paging = paginator.paginate(articles, request_data)
        payload = paginator.prepare_response(rows, paging, draw=request_data["draw"]).to_payload()
        assert payload["draw"] == "3"
        assert payload["recordsTotal"] == 5
        assert payload["recordsFiltered"] == 5
        assert len(payload["data"]) == 5
