"""Unit tests for xolib/lookup.py."""

from unittest.mock import Mock

import pytest

from xolib.exceptions import AmbiguousMatchError, NotFoundError, ValidationError
from xolib.lookup import MatchStrategy, ObjectLookup
from xolib.models import VmBackup


@pytest.fixture
def mock_client():
    return Mock()


@pytest.fixture
def lookup(mock_client):
    return ObjectLookup(mock_client)


@pytest.mark.unit
class TestObjectLookup:
    def test_find_by_id_passes_remote_filter(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = [{"id": "b-1", "name": "nightly"}]

        result = lookup.find("backup", MatchStrategy.BY_ID, "b-1")

        assert result == [{"id": "b-1", "name": "nightly"}]
        mock_client.get_all_objects.assert_called_once_with("backup", {"id": "b-1"}, retry=True)

    def test_single_attempt_passed_through(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = [{"id": "b-1"}]

        lookup.get_backup(MatchStrategy.BY_ID, "b-1", retry=False)

        mock_client.get_all_objects.assert_called_once_with("backup", {"id": "b-1"}, retry=False)

    def test_find_filters_locally(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = [
            {"id": "b-1", "name": "nightly"},
            {"id": "b-2", "name": "weekly"},
        ]

        assert lookup.find("backup", MatchStrategy.BY_NAME, "weekly") == [{"id": "b-2", "name": "weekly"}]

    def test_find_rejects_empty_value(self, lookup, mock_client):
        with pytest.raises(ValidationError):
            lookup.find("backup", MatchStrategy.BY_ID, "")
        mock_client.get_all_objects.assert_not_called()

    def test_get_one_not_found(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = []

        with pytest.raises(NotFoundError):
            lookup.get_one("backup", MatchStrategy.BY_ID, "b-1")

    def test_get_one_ambiguous(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = [
            {"id": "b-1", "name": "nightly"},
            {"id": "b-2", "name": "nightly"},
        ]

        with pytest.raises(AmbiguousMatchError) as exc_info:
            lookup.get_one("backup", MatchStrategy.BY_NAME, "nightly")

        assert "found 2" in str(exc_info.value)

    def test_not_found_and_ambiguous_are_distinct(self):
        assert not issubclass(NotFoundError, AmbiguousMatchError)
        assert not issubclass(AmbiguousMatchError, NotFoundError)

    def test_get_backup_returns_model(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = [
            {"id": "b-1", "name": "nightly", "mode": "full", "power_state": "Enabled"}
        ]

        backup = lookup.get_backup(MatchStrategy.BY_ID, "b-1")

        assert isinstance(backup, VmBackup)
        assert backup.id == "b-1"
        assert backup.power_state == "Enabled"

    def test_get_backups_drops_empty_filters(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = [
            {"id": "b-1", "mode": "full"},
            {"id": "b-2", "mode": "delta"},
        ]

        backups = lookup.get_backups({"mode": "delta", "type": None})

        assert [b.id for b in backups] == ["b-2"]
        mock_client.get_all_objects.assert_called_once_with("backup", {"mode": "delta"})

    def test_get_backups_without_filters(self, lookup, mock_client):
        mock_client.get_all_objects.return_value = []

        assert lookup.get_backups() == []
