import pytest

ME = {"X-User-Id": "11111111-1111-1111-1111-111111111111"}
OTHER = {"X-User-Id": "22222222-2222-2222-2222-222222222222"}


@pytest.mark.asyncio
async def test_heartbeat_then_read_back(api_client, clock):
	response = await api_client.post("/api/v1/availability/heartbeat", headers=ME)
	assert response.status_code == 200
	body = response.json()
	assert body["is_available"] is True
	assert body["user_id"] == ME["X-User-Id"]

	response = await api_client.get("/api/v1/availability", headers=ME)
	assert response.status_code == 200
	assert response.json()["last_available_at"] is not None


@pytest.mark.asyncio
async def test_missing_identity_is_rejected(api_client):
	response = await api_client.post("/api/v1/availability/heartbeat")
	assert response.status_code == 401
	assert response.json()["detail"] == "missing_user_id"
	assert "request_id" in response.json()


@pytest.mark.asyncio
async def test_unknown_availability_is_404(api_client):
	response = await api_client.get("/api/v1/availability", headers=ME)
	assert response.status_code == 404
	assert response.json()["detail"] == "availability_not_found"


@pytest.mark.asyncio
async def test_toggle_and_public_view(api_client):
	response = await api_client.put("/api/v1/availability", json={"is_available": False}, headers=ME)
	assert response.status_code == 200
	assert response.json()["is_available"] is False

	response = await api_client.get(f"/api/v1/availability/{ME['X-User-Id']}", headers=OTHER)
	assert response.status_code == 200
	assert set(response.json()) == {"user_id", "is_available", "last_available_at"}


@pytest.mark.asyncio
async def test_available_users_pagination(api_client, clock):
	for idx in range(3):
		await api_client.post("/api/v1/availability/heartbeat", headers={"X-User-Id": f"user-{idx}"})
		clock.advance(seconds=10)

	response = await api_client.get("/api/v1/available-users", params={"limit": 2}, headers=ME)
	assert response.status_code == 200
	body = response.json()
	assert [item["user_id"] for item in body["data"]] == ["user-2", "user-1"]
	assert body["pagination"]["has_more"] is True

	response = await api_client.get("/api/v1/available-users", params={"offset": -1}, headers=ME)
	assert response.status_code == 422
	assert response.json()["field"] == "offset"


@pytest.mark.asyncio
async def test_search_falls_back_with_warning(api_client):
	await api_client.post("/api/v1/availability/heartbeat", headers=OTHER)
	await api_client.post("/api/v1/availability/heartbeat", headers=ME)

	response = await api_client.get("/api/v1/available-users/search", params={"query": "chess"}, headers=ME)
	assert response.status_code == 200
	body = response.json()
	assert [item["user_id"] for item in body["data"]] == [OTHER["X-User-Id"]]
	assert body["search_meta"]["degraded"] is True
	assert body["search_meta"]["search_enabled"] is False
	assert body["warnings"] == ["Search service temporarily unavailable. Returning unranked results."]
	assert set(body["data"][0]["breakdown"]) == {
		"semantic_similarity",
		"interest_overlap",
		"geo_proximity",
		"recent_activity",
	}


@pytest.mark.asyncio
async def test_search_requires_query(api_client):
	response = await api_client.get("/api/v1/available-users/search", headers=ME)
	assert response.status_code == 422
	assert response.json()["field"] == "query"
