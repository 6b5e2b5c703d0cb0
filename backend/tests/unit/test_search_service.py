"""Unit tests for search query building and the SearchIndexer."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from api.services.search_service import (
    Pagination,
    SearchFilters,
    SearchIndexer,
    build_count_query,
    build_facet_queries,
    build_order_by,
    build_search_query,
)


def compile_sql(query) -> str:
    return str(query.compile(dialect=postgresql.dialect()))


def compile_params(query) -> dict:
    return query.compile(dialect=postgresql.dialect()).params


class TestSearchFilters:
    """Tests for filter normalization."""

    def test_normalized_slugs_values(self):
        filters = SearchFilters(
            language="Python",
            tags=["Machine Learning", "machine-learning"],
            frameworks=["FastAPI"],
            category="Web Development",
            search="  binary search  ",
        ).normalized()

        assert filters.language == "python"
        assert filters.tags == ["machine-learning"]
        assert filters.frameworks == ["fastapi"]
        assert filters.category == "web-development"
        assert filters.search == "binary search"

    def test_blank_values_become_none(self):
        filters = SearchFilters(language="  ", search="   ").normalized()

        assert filters.language is None
        assert filters.search is None


class TestPagination:
    """Tests for Pagination.build()."""

    def test_middle_page(self):
        pagination = Pagination.build(page=2, limit=10, total=35)

        assert pagination.pages == 4
        assert pagination.has_next is True
        assert pagination.has_prev is True

    def test_last_page(self):
        pagination = Pagination.build(page=4, limit=10, total=35)

        assert pagination.has_next is False

    def test_empty(self):
        pagination = Pagination.build(page=1, limit=20, total=0)

        assert pagination.pages == 0
        assert pagination.has_next is False
        assert pagination.has_prev is False


class TestQueryBuilding:
    """Tests for the generated SQL."""

    def test_anonymous_base_set_is_shared_only(self):
        sql = compile_sql(build_count_query(None, SearchFilters()))

        assert "snippets.visibility IN" in sql
        assert "snippets.user_id" not in sql

    def test_requester_base_set_includes_own(self):
        requester = uuid.uuid4()

        query = build_count_query(requester, SearchFilters())

        assert "snippets.user_id = " in compile_sql(query)
        assert requester in compile_params(query).values()

    def test_tags_use_containment(self):
        """Test that tag filters require every tag (AND)."""
        sql = compile_sql(build_search_query(None, SearchFilters(tags=["a", "b"])))

        assert "snippets.tags @> " in sql

    def test_frameworks_and_topics_use_overlap(self):
        """Test that framework and topic filters match any value (OR)."""
        sql = compile_sql(
            build_search_query(None, SearchFilters(frameworks=["react"], topics=["state"]))
        )

        assert "snippets.frameworks && " in sql
        assert "snippets.topics && " in sql

    def test_scalar_filters(self):
        filters = SearchFilters(
            language="python",
            category="algorithms",
            domain="backend",
            complexity="advanced",
            min_quality=7,
        )

        query = build_search_query(None, filters)
        sql = compile_sql(query)
        params = compile_params(query)

        assert "snippets.language = " in sql
        assert "snippets.category = " in sql
        assert "snippets.domain = " in sql
        assert "snippets.complexity = " in sql
        assert "snippets.quality_overall >= " in sql
        assert 7 in params.values()

    def test_max_age_is_relative_to_now(self):
        now = datetime(2024, 6, 30, tzinfo=UTC)

        query = build_search_query(None, SearchFilters(max_age=30), now=now)

        assert datetime(2024, 5, 31, tzinfo=UTC) in compile_params(query).values()

    def test_text_search_uses_websearch_query(self):
        sql = compile_sql(build_search_query(None, SearchFilters(search="binary search")))

        assert "snippets.search_vector @@ websearch_to_tsquery(" in sql

    def test_pagination_offsets(self):
        query = build_search_query(None, SearchFilters(), page=3, limit=10)

        values = list(compile_params(query).values())
        assert 10 in values
        assert 20 in values

    def test_pinned_always_first(self):
        for sort in ("relevance", "popular", "quality", "recent"):
            order = build_order_by(SearchFilters(), sort)
            assert "pinned DESC" in compile_sql(order[0])
            assert "created_at DESC" in compile_sql(order[-1])

    def test_relevance_with_text_ranks(self):
        order = build_order_by(SearchFilters(search="sort"), "relevance")

        assert "ts_rank" in compile_sql(order[1])

    def test_relevance_without_text_uses_views(self):
        order = build_order_by(SearchFilters(), "relevance")

        assert "views DESC" in compile_sql(order[1])

    def test_popular_orders_by_views_then_favorites(self):
        order = build_order_by(SearchFilters(), "popular")

        assert "views DESC" in compile_sql(order[1])
        assert "favorites_count DESC" in compile_sql(order[2])

    def test_quality_puts_unscored_last(self):
        order = build_order_by(SearchFilters(), "quality")

        assert "NULLS LAST" in compile_sql(order[1])

    def test_facet_queries(self):
        queries = build_facet_queries(None)

        assert set(queries) == {"languages", "categories", "complexities", "domains", "frameworks"}
        framework_sql = compile_sql(queries["frameworks"])
        assert "unnest(snippets.frameworks)" in framework_sql
        assert "LIMIT" not in framework_sql


class TestSearchIndexer:
    """Tests for SearchIndexer.search()."""

    @pytest.fixture
    def mock_db(self):
        db = AsyncMock()
        db.execute = AsyncMock()
        return db

    def _facet_result(self, rows):
        result = MagicMock()
        result.mappings.return_value.all.return_value = rows
        return result

    async def test_search_returns_results_pagination_and_facets(self, mock_db, make_snippet):
        snippets = [make_snippet(visibility="public")]
        search_result = MagicMock()
        search_result.scalars.return_value.all.return_value = snippets
        count_result = MagicMock()
        count_result.scalar.return_value = 41
        mock_db.execute.side_effect = [
            search_result,
            count_result,
            self._facet_result([{"value": "python", "count": 30}, {"value": "go", "count": 11}]),
            self._facet_result([{"value": "algorithms", "count": 41}]),
            self._facet_result([]),
            self._facet_result([]),
            self._facet_result([{"value": "react", "count": 5}]),
        ]

        results = await SearchIndexer(mock_db).search(
            uuid.uuid4(), SearchFilters(tags=["Sorting"]), page=1, limit=20
        )

        assert results.results == snippets
        assert results.pagination.total == 41
        assert results.pagination.pages == 3
        assert results.pagination.has_next is True
        assert [(f.value, f.count) for f in results.facets.languages] == [
            ("python", 30),
            ("go", 11),
        ]
        assert results.facets.categories[0].value == "algorithms"
        assert results.facets.complexities == []
        assert results.facets.frameworks[0].count == 5
        assert mock_db.execute.call_count == 7

    async def test_facets_cover_the_base_set_only(self, mock_db):
        """Test that every facet query is scoped to the base set and carries no filters."""
        requester = uuid.uuid4()
        search_result = MagicMock()
        search_result.scalars.return_value.all.return_value = []
        count_result = MagicMock()
        count_result.scalar.return_value = 0
        mock_db.execute.side_effect = [search_result, count_result] + [
            self._facet_result([]) for _ in range(5)
        ]

        results = await SearchIndexer(mock_db).search(
            requester, SearchFilters(language="rust", tags=["async"], min_quality=7)
        )

        assert results.pagination.total == 0
        facet_calls = mock_db.execute.call_args_list[2:]
        assert len(facet_calls) == 5
        for call in facet_calls:
            query = call.args[0]
            sql = compile_sql(query)
            assert "snippets.visibility IN" in sql
            assert "snippets.user_id = " in sql
            assert requester in compile_params(query).values()
            assert "snippets.language = " not in sql
            assert "snippets.tags @>" not in sql
            assert "quality_overall >=" not in sql
