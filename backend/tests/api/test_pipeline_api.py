import pytest

from callhub.infra import jwt as jwt_helper
from callhub.moderation.domain.models import Collection


@pytest.mark.asyncio
async def test_chant_submission_flows_through_approval(api_client, store, user_headers, operator_headers):
	created = await api_client.post(
		"/api/v1/submissions/chant",
		json={"title": "Example", "content": "Call!", "measures": "8"},
		headers=user_headers,
	)
	assert created.status_code == 201
	submission_id = created.json()["id"]
	assert created.json()["status"] == "pending"

	queue = await api_client.get("/api/admin/v1/queue/submissions?kind=chant", headers=operator_headers)
	assert queue.status_code == 200
	assert [entry["id"] for entry in queue.json()] == [submission_id]
	assert queue.json()[0]["payload"]["measures"] == 8

	counts = await api_client.get("/api/admin/v1/queue/counts", headers=operator_headers)
	assert counts.json()["chant"] == 1

	approved = await api_client.post(f"/api/admin/v1/submissions/{submission_id}/approve", headers=operator_headers)
	assert approved.status_code == 200
	body = approved.json()
	assert body["applied"] is True
	assert body["kind"] == "chant"

	[chant] = store.snapshot(Collection.CHANT_TEMPLATES)
	assert chant["content"] == "Call!"
	assert chant["bars"] == 8
	assert chant["author_id"] == "user-1"

	again = await api_client.post(f"/api/admin/v1/submissions/{submission_id}/approve", headers=operator_headers)
	assert again.status_code == 404
	assert again.json()["detail"] == "already_resolved"
	assert "request_id" in again.json()


@pytest.mark.asyncio
async def test_inquiry_reply_is_listed_publicly(api_client, user_headers, operator_headers):
	created = await api_client.post(
		"/api/v1/submissions/inquiry",
		json={"content": "Why no dark mode?", "category": "feature-request"},
		headers=user_headers,
	)
	submission_id = created.json()["id"]

	missing_text = await api_client.post(
		f"/api/admin/v1/submissions/{submission_id}/reply",
		json={"response": ""},
		headers=operator_headers,
	)
	assert missing_text.status_code == 400
	assert missing_text.json()["field"] == "response"

	replied = await api_client.post(
		f"/api/admin/v1/submissions/{submission_id}/reply",
		json={"response": "Coming soon"},
		headers=operator_headers,
	)
	assert replied.status_code == 200

	replies = await api_client.get("/api/v1/replies?category=feature-request")
	assert replies.status_code == 200
	assert [(r["content"], r["response"]) for r in replies.json()] == [("Why no dark mode?", "Coming soon")]


@pytest.mark.asyncio
async def test_intake_errors_are_mapped(api_client, store, user_headers):
	anonymous = await api_client.post("/api/v1/submissions/inquiry", json={"content": "hi"})
	assert anonymous.status_code == 401
	assert anonymous.json()["detail"] == "auth_required"

	invalid = await api_client.post(
		"/api/v1/submissions/artist",
		json={"name": "", "profile_url": "https://x.com/band"},
		headers=user_headers,
	)
	assert invalid.status_code == 400
	assert invalid.json()["detail"] == "invalid:name"
	assert invalid.json()["field"] == "name"
	assert store.snapshot(Collection.SUBMISSIONS) == []


@pytest.mark.asyncio
async def test_admin_routes_require_operator(api_client, user_headers):
	anonymous = await api_client.get("/api/admin/v1/queue/counts")
	assert anonymous.status_code == 401

	forbidden = await api_client.post("/api/admin/v1/submissions/x/reject", headers=user_headers)
	assert forbidden.status_code == 403
	assert forbidden.json()["detail"] == "insufficient_role"


@pytest.mark.asyncio
async def test_reject_is_idempotent_over_http(api_client, user_headers, operator_headers):
	created = await api_client.post(
		"/api/v1/submissions/song",
		json={"title": "Anthem", "related_artist_id": "artist-1"},
		headers=user_headers,
	)
	submission_id = created.json()["id"]

	first = await api_client.post(f"/api/admin/v1/submissions/{submission_id}/reject", headers=operator_headers)
	second = await api_client.post(f"/api/admin/v1/submissions/{submission_id}/reject", headers=operator_headers)

	assert first.status_code == 200
	assert first.json()["applied"] is True
	assert second.status_code == 200
	assert second.json()["applied"] is False


@pytest.mark.asyncio
async def test_bookmark_toggle_and_promote(api_client, user_headers):
	saved = await api_client.put(
		"/api/v1/bookmarks/toggle",
		json={"target_type": "chant", "target_id": "chant-1"},
		headers=user_headers,
	)
	assert saved.json()["state"] == "practice"

	promoted = await api_client.post(
		"/api/v1/bookmarks/promote",
		json={"target_type": "chant", "target_id": "chant-1"},
		headers=user_headers,
	)
	assert promoted.json()["state"] == "favorite"

	invalid = await api_client.post(
		"/api/v1/bookmarks/promote",
		json={"target_type": "call_chart", "target_id": "chart-9"},
		headers=user_headers,
	)
	assert invalid.status_code == 409

	listed = await api_client.get("/api/v1/bookmarks?category=favorite", headers=user_headers)
	[bookmark] = listed.json()
	assert bookmark["target_id"] == "chant-1"

	removed = await api_client.delete(f"/api/v1/bookmarks/{bookmark['id']}", headers=user_headers)
	assert removed.json()["removed"] is True


@pytest.mark.asyncio
async def test_board_post_review(api_client, store, user_headers, operator_headers):
	created = await api_client.post(
		"/api/v1/board/posts",
		json={
			"event_date": "2026-07-01",
			"event_time": "18:00",
			"category": "ground",
			"group_name": "Group",
			"location": "Tokyo",
		},
		headers=user_headers,
	)
	assert created.status_code == 201
	post_id = created.json()["id"]

	pending = await api_client.get("/api/admin/v1/queue/board", headers=operator_headers)
	assert [post["id"] for post in pending.json()] == [post_id]

	approved = await api_client.post(f"/api/admin/v1/board/{post_id}/approve", headers=operator_headers)
	assert approved.json()["applied"] is True
	assert store.snapshot(Collection.BULLETIN_POSTS)[0]["status"] == "approved"


@pytest.mark.asyncio
async def test_report_triage_over_http(api_client, user_headers, operator_headers):
	created = await api_client.post(
		"/api/v1/reports",
		json={"target_type": "chant", "target_id": "chant-1", "category": "abuse-report", "reason": "spam"},
		headers=user_headers,
	)
	assert created.status_code == 201
	report_id = created.json()["id"]

	listed = await api_client.get("/api/admin/v1/queue/reports", headers=operator_headers)
	assert [report["id"] for report in listed.json()] == [report_id]

	resolved = await api_client.post(f"/api/admin/v1/reports/{report_id}/resolve", headers=operator_headers)
	assert resolved.json()["status"] == "resolved"

	switched = await api_client.post(f"/api/admin/v1/reports/{report_id}/ignore", headers=operator_headers)
	assert switched.status_code == 409


@pytest.mark.asyncio
async def test_chart_publication(api_client, user_headers):
	response = await api_client.post(
		"/api/v1/charts",
		json={"song_id": "song-1", "sections": [{"section_name": "Intro", "content": "Hey!"}]},
		headers=user_headers,
	)
	assert response.status_code == 201
	body = response.json()
	assert body["status"] == "approved"
	assert body["sections"][0]["order_index"] == 0


@pytest.mark.asyncio
async def test_bearer_token_identifies_operator(api_client):
	token = jwt_helper.encode_access({"sub": "op-7", "roles": ["admin"]})

	response = await api_client.get("/api/admin/v1/queue/counts", headers={"Authorization": f"Bearer {token}"})

	assert response.status_code == 200
	assert set(response.json()) == {"artist", "song", "chant", "inquiry", "bulletin", "report"}


@pytest.mark.asyncio
async def test_health_endpoints(api_client):
	live = await api_client.get("/health/live")
	assert live.json() == {"status": "ok"}

	ready = await api_client.get("/health/ready")
	assert ready.status_code == 200
	assert ready.json()["checks"]["content_store"]["ok"] is True


@pytest.mark.asyncio
async def test_queue_rejects_unknown_kind_filter(api_client, operator_headers):
	response = await api_client.get("/api/admin/v1/queue/submissions?kind=mix", headers=operator_headers)

	assert response.status_code == 400
	assert response.json()["field"] == "kind"


@pytest.mark.asyncio
async def test_queue_category_filter_over_http_includes_legacy_rows(api_client, store, operator_headers):
	await store.insert(
		Collection.SUBMISSIONS,
		{"id": "legacy", "kind": "inquiry", "status": "pending", "content": "old", "category": "request"},
	)

	response = await api_client.get(
		"/api/admin/v1/queue/submissions?kind=inquiry&category=feature-request", headers=operator_headers
	)

	assert response.status_code == 200
	[entry] = response.json()
	assert entry["id"] == "legacy"
	assert entry["payload"]["category"] == "feature-request"
