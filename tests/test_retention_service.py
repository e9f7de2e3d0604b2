"""Tests for RetentionService (mocked GitHub client)."""

from unittest.mock import Mock

import pytest

from condbuild.config import DEFAULT_KEEP_REGEX
from condbuild.domain.version import RetentionRequest, VersionRecord
from condbuild.exit_codes import APIError
from condbuild.services.retention_service import RetentionService, split_image_path


@pytest.fixture
def versions():
    # Newest first, as the client returns them
    return [
        VersionRecord(6, tags=("pr9",)),
        VersionRecord(5, tags=("prod",)),
        VersionRecord(4, tags=("pr8",)),
        VersionRecord(3, tags=()),
        VersionRecord(2, tags=("v1.2.0",)),
        VersionRecord(1, tags=("pr1",)),
    ]


@pytest.fixture
def github(versions):
    client = Mock()
    client.list_package_versions.return_value = versions
    client.delete_package_version.return_value = True
    return client


def test_split_image_path():
    assert split_image_path("org/platform/worker") == ("org", "platform/worker")
    assert split_image_path("org/api") == ("org", "api")


def test_disabled_is_a_no_op(github):
    report = RetentionService(github).prune(RetentionRequest("org/api", None))
    github.list_package_versions.assert_not_called()
    assert report.nothing_to_delete


def test_deletes_beyond_keep(github):
    report = RetentionService(github).prune(RetentionRequest("org/platform/worker", 2, DEFAULT_KEEP_REGEX))

    github.list_package_versions.assert_called_once_with("org", "platform/worker")
    assert report.kept == [6, 4]
    assert report.protected == [5, 2]
    assert report.deleted == [3, 1]
    deleted = [c[0] for c in github.delete_package_version.call_args_list]
    assert deleted == [("org", "platform/worker", 3), ("org", "platform/worker", 1)]


def test_dry_run_deletes_nothing(github):
    report = RetentionService(github).prune(RetentionRequest("org/api", 1, DEFAULT_KEEP_REGEX), dry_run=True)
    github.delete_package_version.assert_not_called()
    assert report.deleted == [4, 3, 1]
    assert report.dry_run


def test_failed_delete_does_not_stop_others(github):
    github.delete_package_version.side_effect = [False, True, True]
    report = RetentionService(github).prune(RetentionRequest("org/api", 1, DEFAULT_KEEP_REGEX))
    assert report.failed == [4]
    assert report.deleted == [3, 1]


def test_listing_error_is_reported_not_raised(github):
    github.list_package_versions.side_effect = APIError("403 Forbidden")
    report = RetentionService(github).prune(RetentionRequest("org/api", 1))
    assert report.error == "403 Forbidden"
    github.delete_package_version.assert_not_called()
    assert report.to_dict()['error'] == "403 Forbidden"


def test_keep_covers_everything(github):
    report = RetentionService(github).prune(RetentionRequest("org/api", 10))
    assert report.nothing_to_delete
    github.delete_package_version.assert_not_called()


def test_keep_zero_without_pattern_deletes_all(github):
    report = RetentionService(github).prune(RetentionRequest("org/api", 0))
    assert report.deleted == [6, 5, 4, 3, 2, 1]
