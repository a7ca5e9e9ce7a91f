from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from app.main import app


client = TestClient(app)


class TestServiceEndpoints:
    """Test cases for the root and health endpoints"""

    def test_root(self):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Request-ID" in response.headers

    def test_health(self):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_head_health(self):
        assert client.head("/health").status_code == 200

    def test_mapping_route_is_mounted(self):
        response = client.post("/api/mapping/propose", json={"applicationId": "123e4567-e89b-12d3-a456-426614174000"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @patch('app.services.db.init_indexes', new_callable=AsyncMock)
    def test_lifespan_initializes_indexes(self, mock_init_indexes):
        with TestClient(app) as lifespan_client:
            assert lifespan_client.get("/health").status_code == 200
        mock_init_indexes.assert_awaited_once()
