"""Tests for core views."""

from unittest.mock import patch

import pytest
from django.test import Client


class TestCoreViews:
    """Tests for core application views."""

    @pytest.fixture
    def client(self):
        return Client()

    def test_health_returns_ok(self, client):
        """Health check should return JSON with ok status."""
        response = client.get("/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "cache": True}

    @patch("core.views.cache")
    def test_health_reports_unreachable_cache(self, mock_cache, client):
        """Health check should report degraded status when the cache fails."""
        mock_cache.set.side_effect = ConnectionError("redis down")

        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "degraded", "cache": False}
