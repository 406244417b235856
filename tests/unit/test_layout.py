"""Unit tests for the date-partitioned message layout."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from git_mailbox.errors import StorageIOError, ValidationError
from git_mailbox.storage.layout import (
    MESSAGE_SUFFIX,
    MessageLayout,
    _id_from_filename,
    validate_message_id,
)

TS = datetime(2024, 3, 5, 9, 7, 1, tzinfo=timezone.utc)


@pytest.fixture
def layout(tmp_path: Path) -> MessageLayout:
    return MessageLayout(tmp_path)


def touch(layout: MessageLayout, message_id: str, ts: datetime = TS) -> Path:
    path = layout.ensure_path(message_id, ts)
    path.write_text("{}")
    return path


class TestRelativePath:
    """Tests for path derivation."""

    def test_path_format(self, layout: MessageLayout):
        """Path is messages/<YYYY>/<MM>/<YYYY-MM-DD_HH-MM-SS>_<id>.json.enc."""
        rel = layout.relative_path("abc-123", TS)
        assert rel.as_posix() == "messages/2024/03/2024-03-05_09-07-01_abc-123.json.enc"

    def test_no_colons_in_filename(self, layout: MessageLayout):
        assert ":" not in layout.filename("abc", TS)

    def test_path_is_deterministic(self, layout: MessageLayout):
        assert layout.relative_path("abc", TS) == layout.relative_path("abc", TS)

    def test_non_utc_timestamp_is_converted(self, layout: MessageLayout):
        """Partitioning uses the UTC date, not the local one."""
        local = TS.astimezone(timezone(timedelta(hours=-10)))
        assert local.day == 4
        assert layout.relative_path("abc", local) == layout.relative_path("abc", TS)

    def test_naive_timestamp_treated_as_utc(self, layout: MessageLayout):
        naive = TS.replace(tzinfo=None)
        assert layout.relative_path("abc", naive) == layout.relative_path("abc", TS)

    def test_ensure_path_creates_directories(self, layout: MessageLayout, tmp_path: Path):
        path = layout.ensure_path("abc", TS)

        assert path.parent.is_dir()
        assert path.parent == tmp_path / "messages" / "2024" / "03"
        assert not path.exists()

    def test_to_relative(self, layout: MessageLayout):
        path = layout.ensure_path("abc", TS)
        assert layout.to_relative(path) == "messages/2024/03/2024-03-05_09-07-01_abc.json.enc"


class TestMessageIdValidation:
    """Identifiers become filenames and must be safe."""

    @pytest.mark.parametrize("bad", ["", "   ", "a/b", "..\\x", "x\x00y", ".."])
    def test_rejects_unsafe_ids(self, bad):
        with pytest.raises(ValidationError):
            validate_message_id(bad)

    def test_accepts_typical_ids(self):
        validate_message_id("msg_1700000000_abcdef")
        validate_message_id("test-msg-123")


class TestFind:
    """Tests for lookup by identifier."""

    def test_find_existing(self, layout: MessageLayout):
        path = touch(layout, "test-msg-123")
        assert layout.find("test-msg-123") == path

    def test_find_missing(self, layout: MessageLayout):
        touch(layout, "test-msg-123")
        assert layout.find("other") is None

    def test_find_without_messages_dir(self, layout: MessageLayout):
        assert layout.find("anything") is None

    def test_find_across_months(self, layout: MessageLayout):
        touch(layout, "march")
        later = touch(layout, "april", TS + timedelta(days=40))
        assert layout.find("april") == later

    def test_find_does_not_match_prefix_or_suffix_ids(self, layout: MessageLayout):
        """'abc' does not resolve to the files of 'abc-2' or 'x_abc'."""
        touch(layout, "abc-2")
        touch(layout, "x_abc")
        assert layout.find("abc") is None

        exact = touch(layout, "abc", TS + timedelta(seconds=1))
        assert layout.find("abc") == exact

    def test_find_ignores_other_suffixes(self, layout: MessageLayout):
        path = layout.ensure_path("abc", TS)
        path.with_name(path.name + ".tmp").write_text("{}")
        assert layout.find("abc") is None


class TestIdFromFilename:
    """The filename parser mirrors MessageLayout.filename."""

    @pytest.mark.parametrize("message_id", ["a", "msg_1700000000_abcdef", "2024-01-01_00-00-00_x", "msg-\u00e9"])
    def test_parses_generated_filenames(self, layout: MessageLayout, message_id: str):
        assert _id_from_filename(layout.filename(message_id, TS)) == message_id

    @pytest.mark.parametrize(
        "name",
        [
            "abc.json.enc",
            "2024-03-05_09-07-01_.json.enc",
            "2024-03-05-09-07-01_abc.json.enc",
            "not-a-date-at-all-x_abc.json.enc",
            "2024-03-05_09-07-01_abc.json",
        ],
    )
    def test_rejects_foreign_names(self, name: str):
        assert _id_from_filename(name) is None


class TestIterMessageFiles:
    """Tests for the recursive walk."""

    def test_yields_only_message_files_sorted(self, layout: MessageLayout, tmp_path: Path):
        second = touch(layout, "b", TS + timedelta(days=40))
        first = touch(layout, "a")
        (tmp_path / "messages" / ".gitkeep").touch()

        assert list(layout.iter_message_files()) == [first, second]
        assert all(p.name.endswith(MESSAGE_SUFFIX) for p in layout.iter_message_files())

    @pytest.mark.skipif(
        os.name != "posix" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission checks need a non-root POSIX user",
    )
    def test_unreadable_directory_raises(self, layout: MessageLayout):
        path = touch(layout, "a")
        month_dir = path.parent
        month_dir.chmod(0)
        try:
            with pytest.raises(StorageIOError):
                list(layout.iter_message_files())
        finally:
            month_dir.chmod(0o755)
