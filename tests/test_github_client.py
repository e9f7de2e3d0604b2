"""Tests for GitHubClient package version access (mocked HTTP)."""

from unittest.mock import patch, Mock

import pytest
import requests

from condbuild.exit_codes import APIError
from condbuild.infra.github_client import GitHubClient, RateLimitStatus, PER_PAGE


def response(status=200, json_data=None, headers=None):
    mock = Mock()
    mock.status_code = status
    mock.headers = headers or {}
    mock.json.return_value = json_data
    return mock


def version(id, tags, created):
    return {
        "id": id,
        "name": f"sha256:{id}",
        "created_at": created,
        "metadata": {"package_type": "container", "container": {"tags": tags}},
    }


@pytest.fixture
def client():
    return GitHubClient(token="t", base_delay=0, max_delay=0)


class TestListPackageVersions:
    def test_org_endpoint_sorted_newest_first(self, client):
        data = [
            version(1, ["pr1"], "2024-01-01T00:00:00Z"),
            version(3, ["prod"], "2024-03-01T00:00:00Z"),
            version(2, [], "2024-02-01T00:00:00Z"),
        ]
        with patch.object(client.session, 'request', return_value=response(200, data)) as mock_req:
            versions = client.list_package_versions("org", "platform/worker")

        assert [v.id for v in versions] == [3, 2, 1]
        method, url = mock_req.call_args[0]
        assert method == 'GET'
        assert url == "https://api.github.com/orgs/org/packages/container/platform%2Fworker/versions"

    def test_falls_back_to_user_endpoint(self, client):
        with patch.object(client.session, 'request', side_effect=[
            response(404),
            response(200, [version(1, ["pr1"], "2024-01-01T00:00:00Z")]),
        ]) as mock_req:
            versions = client.list_package_versions("someone", "api")

        assert len(versions) == 1
        assert "/users/someone/packages/container/api/versions" in mock_req.call_args[0][1]

    def test_paginates(self, client):
        page1 = [version(i, [], f"2024-01-01T00:00:{i % 60:02d}Z") for i in range(PER_PAGE)]
        page2 = [version(1000, [], "2024-02-01T00:00:00Z")]
        with patch.object(client.session, 'request', side_effect=[
            response(200, page1), response(200, page2),
        ]) as mock_req:
            versions = client.list_package_versions("org", "api")

        assert len(versions) == PER_PAGE + 1
        assert mock_req.call_args_list[1][1]['params']['page'] == 2

    def test_not_found_anywhere(self, client):
        with patch.object(client.session, 'request', return_value=response(404)):
            with pytest.raises(APIError):
                client.list_package_versions("org", "api")

    def test_server_error(self, client):
        with patch.object(client.session, 'request', return_value=response(500)):
            with pytest.raises(APIError):
                client.list_package_versions("org", "api")

    def test_network_failure(self, client):
        with patch('time.sleep'), \
             patch.object(client.session, 'request', side_effect=requests.ConnectionError("down")):
            with pytest.raises(APIError):
                client.list_package_versions("org", "api")


class TestDeletePackageVersion:
    def test_deleted(self, client):
        with patch.object(client.session, 'request', return_value=response(204)) as mock_req:
            assert client.delete_package_version("org", "api", 5) is True
        method, url = mock_req.call_args[0]
        assert method == 'DELETE'
        assert url.endswith("/orgs/org/packages/container/api/versions/5")

    def test_already_gone_is_success(self, client):
        with patch.object(client.session, 'request', side_effect=[response(404), response(404)]):
            assert client.delete_package_version("org", "api", 5) is True

    def test_user_scope(self, client):
        with patch.object(client.session, 'request', side_effect=[response(404), response(204)]) as mock_req:
            assert client.delete_package_version("me", "api", 5) is True
        assert "/users/me/" in mock_req.call_args[0][1]

    def test_forbidden(self, client):
        with patch.object(client.session, 'request', return_value=response(403)):
            assert client.delete_package_version("org", "api", 5) is False


class TestRateLimit:
    def test_headers_tracked(self, client):
        headers = {'X-RateLimit-Remaining': '4000', 'X-RateLimit-Limit': '5000',
                   'X-RateLimit-Reset': '0', 'X-RateLimit-Used': '1000'}
        with patch.object(client.session, 'request', return_value=response(204, headers=headers)):
            client.delete_package_version("org", "api", 1)
        status = client._rate_limit_status
        assert status.remaining == 4000
        assert not status.is_low

    def test_rate_limited_then_ok(self, client):
        limited = response(403, headers={'X-RateLimit-Remaining': '0', 'X-RateLimit-Limit': '5000'})
        with patch('time.sleep') as mock_sleep, \
             patch.object(client.session, 'request', side_effect=[limited, response(204)]):
            assert client.delete_package_version("org", "api", 1) is True
        mock_sleep.assert_called_once()

    def test_is_low(self):
        assert RateLimitStatus(remaining=10, limit=5000, reset_time=0, used=4990).is_low
