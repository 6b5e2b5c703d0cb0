"""Unit tests for snippet service."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.services.errors import (
    MalformedIdError,
    SnippetAccessDeniedError,
    SnippetNotFoundError,
    SnippetValidationError,
)
from api.services.snippet_service import SnippetService, can_view, parse_snippet_id

ENCRYPTION = {"encryptedContent": "ciphertext", "iv": "abc", "algorithm": "AES-GCM"}


@pytest.fixture
def mock_db():
    """Create a mock async database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.delete = AsyncMock()
    db.execute = AsyncMock()

    async def mock_refresh(instance):
        if getattr(instance, "id", None) is None:
            instance.id = uuid.uuid4()
            instance.created_at = datetime.now(UTC)
            instance.updated_at = datetime.now(UTC)

    db.refresh = AsyncMock(side_effect=mock_refresh)
    return db


@pytest.fixture
def snippet_service(mock_db):
    """Create a SnippetService with mock database."""
    return SnippetService(mock_db)


def returns(mock_db, snippet):
    """Make the next execute() resolve to ``snippet``."""
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = snippet
    mock_db.execute.return_value = mock_result


class TestParseSnippetId:
    """Tests for id parsing."""

    def test_parses_uuid_string(self):
        value = uuid.uuid4()

        assert parse_snippet_id(str(value)) == value

    def test_passes_uuid_through(self):
        value = uuid.uuid4()

        assert parse_snippet_id(value) is value

    @pytest.mark.parametrize("raw", ["not-a-uuid", "", "123"])
    def test_malformed_raises(self, raw):
        with pytest.raises(MalformedIdError):
            parse_snippet_id(raw)


class TestCanView:
    """Tests for the visibility rule."""

    @pytest.mark.parametrize("visibility", ["public", "unlisted"])
    def test_shared_visible_to_anyone(self, make_snippet, visibility):
        snippet = make_snippet(visibility=visibility)

        assert can_view(snippet, None)
        assert can_view(snippet, uuid.uuid4())

    def test_private_visible_to_owner_only(self, make_snippet):
        snippet = make_snippet(visibility="private")

        assert can_view(snippet, snippet.user_id)
        assert not can_view(snippet, uuid.uuid4())
        assert not can_view(snippet, None)


class TestSnippetServiceCreate:
    """Tests for SnippetService.create()."""

    async def test_create_snippet_basic(self, snippet_service, mock_db):
        """Test creating a snippet with a declared language."""
        user_id = uuid.uuid4()

        result = await snippet_service.create(
            user_id=user_id, title="Hello", code="print('hello')", language="Python"
        )

        mock_db.add.assert_called_once_with(result)
        mock_db.flush.assert_called_once()
        assert result.user_id == user_id
        assert result.language == "python"
        assert result.language_confidence == 1.0
        assert result.needs_analysis is True
        assert result.visibility == "private"

    async def test_create_classifies_missing_language(self, snippet_service):
        result = await snippet_service.create(
            user_id=uuid.uuid4(), title="Greeter", code="def foo():\n    print('hi')"
        )

        assert result.language == "python"
        assert 0 < result.language_confidence < 1

    async def test_create_normalizes_sets_and_keywords(self, snippet_service):
        result = await snippet_service.create(
            user_id=uuid.uuid4(),
            title="Quick Sort",
            code="def qs(xs):\n    return xs",
            tags=["Sorting", "sorting", "Divide And Conquer"],
            frameworks=None,
        )

        assert result.tags == ["sorting", "divide-and-conquer"]
        assert result.frameworks == []
        assert result.keywords == ["quick", "sort", "sorting", "divide-and-conquer"]

    async def test_create_encrypted_is_private_and_skips_analysis(self, snippet_service):
        """Test that ciphertext is never public and never queued for enrichment."""
        result = await snippet_service.create(
            user_id=uuid.uuid4(),
            title="Secret",
            code="ciphertext",
            language="text",
            visibility="public",
            encryption=ENCRYPTION,
        )

        assert result.visibility == "private"
        assert result.needs_analysis is False
        assert result.is_encrypted

    async def test_create_over_cap_persists_nothing(self, snippet_service, mock_db):
        with pytest.raises(SnippetValidationError) as exc_info:
            await snippet_service.create(
                user_id=uuid.uuid4(),
                title="Tagged",
                code="x = 1",
                tags=[f"tag-{i}" for i in range(21)],
            )

        assert exc_info.value.fields == ["tags"]
        mock_db.add.assert_not_called()
        mock_db.flush.assert_not_called()

    async def test_create_rejects_unknown_fields(self, snippet_service):
        with pytest.raises(TypeError):
            await snippet_service.create(
                user_id=uuid.uuid4(), title="Hello", code="x", views=100
            )


class TestSnippetServiceGetById:
    """Tests for SnippetService.get_by_id()."""

    async def test_get_by_id_found(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet()
        returns(mock_db, snippet)

        result = await snippet_service.get_by_id(str(snippet.id))

        assert result is snippet
        mock_db.execute.assert_called_once()

    async def test_get_by_id_not_found(self, snippet_service, mock_db):
        returns(mock_db, None)

        with pytest.raises(SnippetNotFoundError):
            await snippet_service.get_by_id(uuid.uuid4())

    async def test_malformed_id_skips_query(self, snippet_service, mock_db):
        with pytest.raises(MalformedIdError):
            await snippet_service.get_by_id("nope")

        mock_db.execute.assert_not_called()


class TestSnippetServiceViews:
    """Tests for view and copy counting."""

    async def test_non_owner_view_increments(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="public", views=4)
        returns(mock_db, snippet)

        result = await snippet_service.get_for_viewer(snippet.id, uuid.uuid4())

        assert result.views == 5
        mock_db.flush.assert_called_once()

    async def test_anonymous_view_increments(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="unlisted", views=0)
        returns(mock_db, snippet)

        result = await snippet_service.get_for_viewer(snippet.id, None)

        assert result.views == 1

    async def test_owner_view_does_not_increment(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(views=4)
        returns(mock_db, snippet)

        result = await snippet_service.get_for_viewer(snippet.id, snippet.user_id)

        assert result.views == 4
        mock_db.flush.assert_not_called()

    async def test_private_hidden_from_others(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="private")
        returns(mock_db, snippet)

        with pytest.raises(SnippetAccessDeniedError):
            await snippet_service.get_for_viewer(snippet.id, uuid.uuid4())

    async def test_record_copy(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="public", copied=2)
        returns(mock_db, snippet)

        result = await snippet_service.record_copy(snippet.id, uuid.uuid4())

        assert result.copied == 3

    async def test_copy_of_private_denied(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="private")
        returns(mock_db, snippet)

        with pytest.raises(SnippetAccessDeniedError):
            await snippet_service.record_copy(snippet.id, uuid.uuid4())


class TestSnippetServiceUpdate:
    """Tests for SnippetService.update()."""

    async def test_update_title_recomputes_keywords(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(tags=["io"], keywords=["test", "snippet", "io"])
        returns(mock_db, snippet)

        result = await snippet_service.update(
            snippet.id, snippet.user_id, {"title": "File Reader"}
        )

        assert result.title == "File Reader"
        assert result.keywords == ["file", "reader", "io"]
        mock_db.flush.assert_called_once()

    async def test_update_by_non_owner_denied(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="public")
        returns(mock_db, snippet)

        with pytest.raises(SnippetAccessDeniedError):
            await snippet_service.update(snippet.id, uuid.uuid4(), {"title": "Hijacked"})

        assert snippet.title == "Test Snippet"

    async def test_update_not_found(self, snippet_service, mock_db):
        returns(mock_db, None)

        with pytest.raises(SnippetNotFoundError):
            await snippet_service.update(uuid.uuid4(), uuid.uuid4(), {"title": "Anything"})

    async def test_invalid_update_leaves_snippet_untouched(
        self, snippet_service, mock_db, make_snippet
    ):
        """Test that a rejected update applies no field at all."""
        snippet = make_snippet(tags=["keep"])
        returns(mock_db, snippet)

        with pytest.raises(SnippetValidationError):
            await snippet_service.update(
                snippet.id,
                snippet.user_id,
                {"title": "Renamed", "tags": [f"t{i}" for i in range(21)]},
            )

        assert snippet.title == "Test Snippet"
        assert snippet.tags == ["keep"]
        mock_db.flush.assert_not_called()

    async def test_clearing_language_reclassifies(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(code="SELECT id FROM users", language="python")
        returns(mock_db, snippet)

        result = await snippet_service.update(snippet.id, snippet.user_id, {"language": None})

        assert result.language == "sql"
        assert result.language_confidence < 1

    async def test_setting_language_declares_it(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(language="python", language_confidence=0.4)
        returns(mock_db, snippet)

        result = await snippet_service.update(snippet.id, snippet.user_id, {"language": "Ruby"})

        assert result.language == "ruby"
        assert result.language_confidence == 1.0

    async def test_adding_encryption_forces_private(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(visibility="public")
        returns(mock_db, snippet)

        result = await snippet_service.update(
            snippet.id, snippet.user_id, {"encryption": ENCRYPTION}
        )

        assert result.visibility == "private"

    async def test_adding_encryption_cancels_pending_analysis(
        self, snippet_service, mock_db, make_snippet
    ):
        """Test that a snippet encrypted while queued is no longer due for enrichment."""
        snippet = make_snippet(needs_analysis=True)
        returns(mock_db, snippet)

        result = await snippet_service.update(
            snippet.id, snippet.user_id, {"encryption": ENCRYPTION}
        )

        assert result.needs_analysis is False

    async def test_plain_edit_keeps_pending_analysis(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(needs_analysis=True)
        returns(mock_db, snippet)

        result = await snippet_service.update(snippet.id, snippet.user_id, {"notes": "todo"})

        assert result.needs_analysis is True

    async def test_null_set_clears_it(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet(topics=["caching"])
        returns(mock_db, snippet)

        result = await snippet_service.update(snippet.id, snippet.user_id, {"topics": None})

        assert result.topics == []


class TestSnippetServiceDelete:
    """Tests for SnippetService.delete()."""

    async def test_delete_success(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet()
        returns(mock_db, snippet)

        result = await snippet_service.delete(str(snippet.id), snippet.user_id)

        assert result == snippet.id
        mock_db.delete.assert_called_once_with(snippet)

    async def test_delete_by_non_owner_denied(self, snippet_service, mock_db, make_snippet):
        snippet = make_snippet()
        returns(mock_db, snippet)

        with pytest.raises(SnippetAccessDeniedError):
            await snippet_service.delete(snippet.id, uuid.uuid4())

        mock_db.delete.assert_not_called()


class TestSnippetServiceListMine:
    """Tests for SnippetService.list_mine()."""

    async def test_list_mine_returns_page_and_total(
        self, snippet_service, mock_db, make_snippet
    ):
        snippets = [make_snippet(), make_snippet()]
        count_result = MagicMock()
        count_result.scalar.return_value = 7
        page_result = MagicMock()
        page_result.scalars.return_value.all.return_value = snippets
        mock_db.execute.side_effect = [count_result, page_result]

        items, total = await snippet_service.list_mine(
            uuid.uuid4(), page=2, limit=2, tags=["Sorting"]
        )

        assert items == snippets
        assert total == 7
        assert mock_db.execute.call_count == 2
        page_query = mock_db.execute.call_args_list[1].args[0]
        assert page_query._limit_clause.value == 2
        assert page_query._offset_clause.value == 2

    async def test_list_mine_empty(self, snippet_service, mock_db):
        count_result = MagicMock()
        count_result.scalar.return_value = None
        page_result = MagicMock()
        page_result.scalars.return_value.all.return_value = []
        mock_db.execute.side_effect = [count_result, page_result]

        items, total = await snippet_service.list_mine(uuid.uuid4())

        assert items == []
        assert total == 0
