"""
Notes API — Note Service Unit Tests
====================================

What:  Tests for NoteService business logic and its input helpers.
How:   Uses mock DB sessions (no real database).
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.exc import OperationalError

from notes_api.exceptions import DatabaseError, NotFoundError, ValidationError
from notes_api.schemas.note import NoteCreate, NoteUpdate
from notes_api.services.note_service import (
    NoteService,
    parse_note_id,
    validate_note_fields,
)


def _mock_note(note_id=1, title="Groceries", content="milk, eggs"):
    note = MagicMock()
    note.id = note_id
    note.title = title
    note.content = content
    return note


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestParseNoteId:

    def test_integer_string(self):
        assert parse_note_id("42") == 42

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError, match="Invalid ID format"):
            parse_note_id("abc")

    def test_float_rejected(self):
        with pytest.raises(ValidationError):
            parse_note_id("1.5")

    def test_signed_integers(self):
        assert parse_note_id("+7") == 7
        assert parse_note_id("-1") == -1

    @pytest.mark.parametrize("raw", [" 1", "1 ", "0_1", "١", "", "+"])
    def test_non_ascii_digit_forms_rejected(self, raw):
        # int() accepts most of these
        with pytest.raises(ValidationError) as exc_info:
            parse_note_id(raw)
        assert exc_info.value.message == "Invalid ID format"
        assert exc_info.value.field == "id"

    def test_id_column_bounds(self):
        assert parse_note_id("2147483647") == 2147483647
        assert parse_note_id("-2147483648") == -2147483648

    @pytest.mark.parametrize("raw", ["2147483648", "-2147483649", "99999999999999999999999"])
    def test_out_of_range_rejected(self, raw):
        with pytest.raises(ValidationError, match="Invalid ID format"):
            parse_note_id(raw)


class TestValidateNoteFields:

    def test_within_limits(self):
        validate_note_fields("t" * 100, "c" * 1000)

    def test_title_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_note_fields("t" * 101, "ok")
        assert exc_info.value.message == "Title exceeds maximum length of: 100 characters"
        assert exc_info.value.field == "title"

    def test_content_too_long_reports_content_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_note_fields("ok", "c" * 1001)
        assert exc_info.value.message == "Content exceeds maximum length of: 1000 characters"

    def test_title_checked_first(self):
        with pytest.raises(ValidationError, match="Title"):
            validate_note_fields("t" * 101, "c" * 1001)

    def test_limits_follow_settings(self):
        with patch("notes_api.services.note_service.settings") as mock_settings:
            mock_settings.max_title_length = 5
            mock_settings.max_content_length = 10
            with pytest.raises(ValidationError, match="maximum length of: 5 characters"):
                validate_note_fields("abcdef", "")

    def test_length_counts_characters(self):
        # 100 multi-byte characters is still within the title limit
        validate_note_fields("é" * 100, "")


class TestNoteServiceGet:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_get_note_found(self, mock_db_session):
        mock_db_session.execute.return_value = _scalar_result(_mock_note(7))

        result = await self.service.get_note(mock_db_session, 7)

        assert result.id == 7
        assert result.title == "Groceries"
        assert result.content == "milk, eggs"

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.get_note(mock_db_session, 99)

    @pytest.mark.asyncio
    async def test_get_note_database_failure(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("gone"))
        )

        with pytest.raises(DatabaseError):
            await self.service.get_note(mock_db_session, 1)


class TestNoteServiceList:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_notes_empty(self, mock_db_session):
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = []
        count = MagicMock()
        count.scalar.return_value = 0
        mock_db_session.execute = AsyncMock(side_effect=[rows, count])

        result = await self.service.list_notes(mock_db_session)

        assert result.notes == []
        assert result.total_count == 0

    @pytest.mark.asyncio
    async def test_list_notes_with_results(self, mock_db_session):
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = [
            _mock_note(i, f"Note {i}", f"Body {i}") for i in range(1, 4)
        ]
        count = MagicMock()
        count.scalar.return_value = 3
        mock_db_session.execute = AsyncMock(side_effect=[rows, count])

        result = await self.service.list_notes(mock_db_session, limit=20)

        assert [note.id for note in result.notes] == [1, 2, 3]
        assert result.total_count == 3

    @pytest.mark.asyncio
    async def test_list_notes_database_failure(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("gone"))
        )

        with pytest.raises(DatabaseError, match="Failed to fetch notes"):
            await self.service.list_notes(mock_db_session)


class TestNoteServiceCreate:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_note_returns_assigned_id(self, mock_db_session):
        added = []

        def fake_add(note):
            added.append(note)

        async def fake_flush():
            added[0].id = 11

        mock_db_session.add = MagicMock(side_effect=fake_add)
        mock_db_session.flush = AsyncMock(side_effect=fake_flush)

        result = await self.service.create_note(
            mock_db_session, NoteCreate(title="Todo", content="write tests")
        )

        assert result.id == 11
        assert result.title == "Todo"
        assert added[0].content == "write tests"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_note_too_long_never_touches_db(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.create_note(
                mock_db_session, NoteCreate(title="t" * 101, content="")
            )
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()


class TestNoteServiceUpdate:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_update_note(self, mock_db_session):
        note = _mock_note(3)
        mock_db_session.execute.return_value = _scalar_result(note)

        result = await self.service.update_note(
            mock_db_session, 3, NoteUpdate(title="New", content="Body")
        )

        assert result.id == 3
        assert result.title == "New"
        assert note.content == "Body"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_missing_note_is_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.update_note(
                mock_db_session, 3, NoteUpdate(title="t" * 500, content="")
            )

    @pytest.mark.asyncio
    async def test_update_invalid_fields_leaves_note_untouched(self, mock_db_session):
        note = _mock_note(3)
        mock_db_session.execute.return_value = _scalar_result(note)

        with pytest.raises(ValidationError):
            await self.service.update_note(
                mock_db_session, 3, NoteUpdate(title="ok", content="c" * 1001)
            )
        assert note.content == "milk, eggs"


class TestNoteServiceDelete:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_delete_note(self, mock_db_session):
        result = MagicMock()
        result.rowcount = 1
        mock_db_session.execute.return_value = result

        response = await self.service.delete_note(mock_db_session, 5)

        assert response.message == "Note 5 deleted"

    @pytest.mark.asyncio
    async def test_delete_missing_note(self, mock_db_session):
        result = MagicMock()
        result.rowcount = 0
        mock_db_session.execute.return_value = result

        with pytest.raises(NotFoundError):
            await self.service.delete_note(mock_db_session, 5)
