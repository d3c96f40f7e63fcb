import pytest

ADMIN = {"X-User-Id": "admin-1"}


@pytest.mark.asyncio
async def test_default_weights(api_client):
	response = await api_client.get("/api/v1/ranking/weights")
	assert response.status_code == 200
	assert response.json() == {
		"semantic_similarity": 0.6,
		"interest_overlap": 0.2,
		"geo_proximity": 0.1,
		"recent_activity": 0.1,
	}


@pytest.mark.asyncio
async def test_partial_update_reports_sum(api_client):
	response = await api_client.put("/api/v1/ranking/weights", json={"semantic_similarity": 0.8}, headers=ADMIN)
	assert response.status_code == 200
	body = response.json()
	assert body["weights"]["semantic_similarity"] == 0.8
	assert body["weights"]["interest_overlap"] == 0.2
	assert body["weights_validation"]["valid"] is False
	assert body["weights_validation"]["sum"] == pytest.approx(1.2)

	response = await api_client.get("/api/v1/ranking/weights/validate")
	assert response.json()["valid"] is False

	response = await api_client.get("/api/v1/ranking/config")
	keys = {entry["config_key"] for entry in response.json()}
	assert keys == {"semantic_similarity_weight"}


@pytest.mark.asyncio
async def test_update_rejects_bad_values(api_client):
	response = await api_client.put("/api/v1/ranking/weights", json={"geo_proximity": 1.5}, headers=ADMIN)
	assert response.status_code == 422
	response = await api_client.put("/api/v1/ranking/weights", json={}, headers=ADMIN)
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_reset_and_info(api_client):
	await api_client.put("/api/v1/ranking/weights", json={"recent_activity": 0.5}, headers=ADMIN)
	response = await api_client.post("/api/v1/ranking/weights/reset", headers=ADMIN)
	assert response.status_code == 200
	assert response.json()["recent_activity"] == 0.1

	response = await api_client.get("/api/v1/ranking/info")
	assert response.status_code == 200
	info = response.json()
	assert info["version"] == "v1"
	assert info["weights_sum"] == pytest.approx(1.0)
	assert "semantic_similarity" in info["formula"]


@pytest.mark.asyncio
async def test_metrics_and_health(api_client):
	await api_client.get("/api/v1/ranking/weights")
	response = await api_client.get("/metrics")
	assert response.status_code == 200
	assert "discovery_ranking_weights_cache_total" in response.text

	response = await api_client.get("/health/ready")
	assert response.json() == {"status": "ok", "storage": "memory"}
