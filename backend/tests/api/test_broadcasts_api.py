import pytest

ME = {"X-User-Id": "author"}
VIEWER = {"X-User-Id": "viewer"}


@pytest.mark.asyncio
async def test_broadcast_lifecycle(api_client):
	response = await api_client.post("/api/v1/broadcasts", json={"message": "at the gym", "ttl_hours": 2}, headers=ME)
	assert response.status_code == 201
	created = response.json()
	assert created["message"] == "at the gym"
	assert created["is_active"] is True

	response = await api_client.put("/api/v1/broadcasts", json={"message": "leaving soon"}, headers=ME)
	assert response.status_code == 200
	assert response.json()["id"] == created["id"]
	assert response.json()["expires_at"] == created["expires_at"]

	response = await api_client.get("/api/v1/broadcasts/author", headers=VIEWER)
	assert response.status_code == 200
	assert set(response.json()) == {"user_id", "message", "expires_at", "created_at"}

	response = await api_client.delete("/api/v1/broadcasts", headers=ME)
	assert response.status_code == 204
	response = await api_client.delete("/api/v1/broadcasts", headers=ME)
	assert response.status_code == 204

	response = await api_client.get("/api/v1/broadcasts", headers=ME)
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_ttl_out_of_range(api_client):
	response = await api_client.post("/api/v1/broadcasts", json={"message": "hi", "ttl_hours": 200}, headers=ME)
	assert response.status_code == 422
	assert response.json()["field"] == "ttl_hours"


@pytest.mark.asyncio
async def test_message_too_long(api_client):
	response = await api_client.post("/api/v1/broadcasts", json={"message": "x" * 201}, headers=ME)
	assert response.status_code == 422
	assert response.json()["field"] == "message"


@pytest.mark.asyncio
async def test_update_without_broadcast_is_404(api_client):
	response = await api_client.put("/api/v1/broadcasts", json={"message": "nope"}, headers=ME)
	assert response.status_code == 404
	assert response.json()["detail"] == "broadcast_not_found"


@pytest.mark.asyncio
async def test_expired_broadcast_disappears(api_client, clock):
	await api_client.post("/api/v1/broadcasts", json={"message": "quick one", "ttl_hours": 1}, headers=ME)
	clock.advance(hours=1, seconds=1)
	response = await api_client.get("/api/v1/broadcasts/author", headers=VIEWER)
	assert response.status_code == 404
