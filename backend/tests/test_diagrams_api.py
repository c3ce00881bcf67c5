"""Tests for the diagram, checkpoint, backup and access API endpoints."""

from __future__ import annotations

import json

import pytest

from atlantis.core.config import settings


def diagram_payload(diagram_id: str, title: str, **overrides) -> dict:
    """Build a backup entry as the frontend would send it."""
    payload = {
        "id": diagram_id,
        "title": title,
        "content": "graph TD\n  A --> B",
        "emoji": "📊",
        "isFavorite": False,
        "createdAt": "2025-06-01T10:00:00.000Z",
        "updatedAt": "2025-06-02T10:00:00.000Z",
    }
    payload.update(overrides)
    return payload


# =============================================================================
# CSRF
# =============================================================================


class TestCsrf:
    """Tests for anti-forgery protection."""

    @pytest.mark.asyncio
    async def test_token_endpoint_sets_cookie(self, client):
        """Test that GET /api/csrf returns the token stored in the cookie."""
        response = await client.get("/api/csrf")

        assert response.status_code == 200
        assert response.json()["token"] == client.cookies.get(settings.csrf_cookie_name)

    @pytest.mark.asyncio
    async def test_token_is_stable(self, client):
        """Test that an existing cookie is reused rather than rotated."""
        first = (await client.get("/api/csrf")).json()["token"]
        second = (await client.get("/api/csrf")).json()["token"]

        assert first == second

    @pytest.mark.asyncio
    async def test_list_issues_cookie(self, client):
        """Test that listing diagrams hands out the CSRF cookie."""
        response = await client.get("/api/diagrams")

        assert response.status_code == 200
        assert settings.csrf_cookie_name in response.cookies

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, client):
        """Test that a mutating request without the header is forbidden."""
        await client.get("/api/csrf")

        response = await client.post("/api/diagrams", json={"title": "x"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Invalid CSRF token"

    @pytest.mark.asyncio
    async def test_wrong_token_rejected(self, client, repository):
        """Test that a mismatched token is forbidden and nothing changes."""
        await client.get("/api/csrf")

        response = await client.post(
            "/api/diagrams",
            json={"title": "x"},
            headers={settings.csrf_header_name: "not-the-token"},
        )

        assert response.status_code == 403
        assert (await repository.list_page()).total == 0

    @pytest.mark.asyncio
    async def test_every_mutation_protected(self, client, repository):
        """Test that PUT, DELETE, checkpoint and restore require the token."""
        created = await repository.create()

        responses = [
            await client.put(f"/api/diagrams/{created.id}", json={"title": "x"}),
            await client.delete(f"/api/diagrams/{created.id}"),
            await client.post(
                f"/api/diagrams/{created.id}/checkpoint", json={"content": "graph TD"}
            ),
            await client.post("/api/backup", json=[]),
        ]

        assert [r.status_code for r in responses] == [403, 403, 403, 403]
        assert await repository.get_by_id(created.id) is not None


# =============================================================================
# Diagrams
# =============================================================================


class TestDiagramsApi:
    """Tests for /api/diagrams."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, client, csrf_headers):
        """Test creating a diagram and reading it back in camelCase."""
        response = await client.post(
            "/api/diagrams",
            json={"title": "Flow", "content": "graph TD", "emoji": "🚀"},
            headers=csrf_headers,
        )

        assert response.status_code == 201
        created = response.json()
        assert set(created) == {
            "id",
            "title",
            "content",
            "emoji",
            "isFavorite",
            "createdAt",
            "updatedAt",
        }
        assert created["title"] == "Flow"
        assert created["isFavorite"] is False

        fetched = await client.get(f"/api/diagrams/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == created

    @pytest.mark.asyncio
    async def test_create_with_defaults(self, client, csrf_headers):
        """Test that an empty body creates a default diagram."""
        response = await client.post("/api/diagrams", json={}, headers=csrf_headers)

        assert response.status_code == 201
        assert response.json()["title"] == "Untitled Diagram"
        assert response.json()["content"].startswith("graph TD")

    @pytest.mark.asyncio
    async def test_create_title_too_long(self, client, csrf_headers):
        """Test that a long title is a 400 with the validation message."""
        response = await client.post(
            "/api/diagrams", json={"title": "x" * 101}, headers=csrf_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Title too long (max 100 chars)"

    @pytest.mark.asyncio
    async def test_list_pagination(self, client, repository):
        """Test pagination markers in the listing."""
        for i in range(3):
            await repository.create(title=f"Diagram {i}")

        response = await client.get("/api/diagrams", params={"limit": 2})

        data = response.json()
        assert response.status_code == 200
        assert len(data["items"]) == 2
        assert data["total"] == 3
        assert data["hasMore"] is True
        assert data["nextOffset"] == 2

    @pytest.mark.asyncio
    async def test_list_clamps_limit(self, client, repository):
        """Test that out-of-range limit and offset are clamped."""
        for i in range(2):
            await repository.create(title=f"Diagram {i}")

        response = await client.get("/api/diagrams", params={"limit": 0, "offset": -4})

        data = response.json()
        assert len(data["items"]) == 1
        assert data["nextOffset"] == 1

    @pytest.mark.asyncio
    async def test_list_rejects_non_numeric_limit(self, client):
        """Test that a non-numeric limit is a validation error."""
        response = await client.get("/api/diagrams", params={"limit": "many"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_search(self, client, repository):
        """Test the query parameter filters by title and content."""
        demo = await repository.create(title="Flowchart Demo", content="checkout flow")
        await repository.create(title="Other", content="pie")

        response = await client.get("/api/diagrams", params={"query": "Checkout"})

        data = response.json()
        assert [item["id"] for item in data["items"]] == [demo.id]
        assert data["total"] == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, client):
        """Test that an unknown id is a 404."""
        response = await client.get("/api/diagrams/nope00")

        assert response.status_code == 404
        assert response.json()["detail"] == "Diagram not found"

    @pytest.mark.asyncio
    async def test_update(self, client, csrf_headers, repository):
        """Test a partial update in camelCase."""
        created = await repository.create(title="Old", content="v1")

        response = await client.put(
            f"/api/diagrams/{created.id}",
            json={"isFavorite": True, "content": "v2"},
            headers=csrf_headers,
        )

        data = response.json()
        assert response.status_code == 200
        assert data["isFavorite"] is True
        assert data["content"] == "v2"
        assert data["title"] == "Old"
        assert len(await repository.list_checkpoints(created.id)) == 1

    @pytest.mark.asyncio
    async def test_update_missing(self, client, csrf_headers):
        """Test that updating an unknown id is a 404."""
        response = await client.put(
            "/api/diagrams/nope00", json={"title": "x"}, headers=csrf_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_title_too_long(self, client, csrf_headers, repository):
        """Test that a long title on update is a 400."""
        created = await repository.create()

        response = await client.put(
            f"/api/diagrams/{created.id}", json={"title": "y" * 101}, headers=csrf_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete(self, client, csrf_headers, repository):
        """Test deleting a diagram and then deleting it again."""
        created = await repository.create()

        first = await client.delete(f"/api/diagrams/{created.id}", headers=csrf_headers)
        second = await client.delete(f"/api/diagrams/{created.id}", headers=csrf_headers)

        assert first.status_code == 200
        assert first.json() == {"success": True}
        assert second.status_code == 404

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_500(self, client, repository, monkeypatch):
        """Test that storage failures become a generic 500."""

        async def broken(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(repository, "list_page", broken)

        response = await client.get("/api/diagrams")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to load diagrams"


# =============================================================================
# Checkpoints
# =============================================================================


class TestCheckpointsApi:
    """Tests for /api/diagrams/{id}/checkpoint."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, csrf_headers, repository):
        """Test appending a checkpoint and listing newest first."""
        created = await repository.create(content="v1")

        response = await client.post(
            f"/api/diagrams/{created.id}/checkpoint",
            json={"content": "v2", "title": "Renamed", "isFavorite": True},
            headers=csrf_headers,
        )

        data = response.json()
        assert response.status_code == 200
        assert data["checkpoint"]["content"] == "v2"
        assert data["checkpoint"]["diagramId"] == created.id
        assert data["diagram"]["title"] == "Renamed"
        assert data["diagram"]["isFavorite"] is True

        listing = await client.get(f"/api/diagrams/{created.id}/checkpoint")
        assert [c["content"] for c in listing.json()["checkpoints"]] == ["v2", "v1"]

    @pytest.mark.asyncio
    async def test_content_required(self, client, csrf_headers, repository):
        """Test that a checkpoint without content is a 400."""
        created = await repository.create()

        response = await client.post(
            f"/api/diagrams/{created.id}/checkpoint", json={}, headers=csrf_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Content is required"

    @pytest.mark.asyncio
    async def test_missing_diagram(self, client, csrf_headers):
        """Test that checkpoints of an unknown diagram are 404."""
        listing = await client.get("/api/diagrams/nope00/checkpoint")
        creation = await client.post(
            "/api/diagrams/nope00/checkpoint", json={"content": "x"}, headers=csrf_headers
        )

        assert listing.status_code == 404
        assert creation.status_code == 404

    @pytest.mark.asyncio
    async def test_title_too_long(self, client, csrf_headers, repository):
        """Test that a long title on checkpoint is a 400."""
        created = await repository.create()

        response = await client.post(
            f"/api/diagrams/{created.id}/checkpoint",
            json={"content": "x", "title": "t" * 101},
            headers=csrf_headers,
        )

        assert response.status_code == 400


# =============================================================================
# Backup
# =============================================================================


class TestBackupApi:
    """Tests for /api/backup."""

    @pytest.mark.asyncio
    async def test_download(self, client, repository):
        """Test that the backup is a JSON attachment of every diagram."""
        created = await repository.create(title="Saved", content="graph TD")

        response = await client.get("/api/backup")

        assert response.status_code == 200
        assert 'filename="atlantis-backup.json"' in response.headers["content-disposition"]
        assert settings.csrf_cookie_name in response.cookies
        [doc] = json.loads(response.text)
        assert doc["id"] == created.id
        assert doc["content"] == "graph TD"
        assert "isFavorite" in doc

    @pytest.mark.asyncio
    async def test_restore(self, client, csrf_headers, repository):
        """Test that restore replaces everything and preserves fields."""
        old = await repository.create()

        response = await client.post(
            "/api/backup",
            json=[
                diagram_payload("aaaaaa", "Restored", isFavorite=True),
                diagram_payload("bbbbbb", "Second"),
            ],
            headers=csrf_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 2}
        assert await repository.get_by_id(old.id) is None
        restored = await repository.get_by_id("aaaaaa")
        assert restored.is_favorite is True
        assert restored.created_at.year == 2025

    @pytest.mark.asyncio
    async def test_restore_round_trip(self, client, csrf_headers, repository):
        """Test that a downloaded backup can be restored as-is."""
        await repository.create(title="One", content="a")
        await repository.create(title="Two", content="b")
        backup = (await client.get("/api/backup")).json()

        response = await client.post("/api/backup", json=backup, headers=csrf_headers)

        assert response.json()["count"] == 2
        after = (await client.get("/api/backup")).json()
        assert after == backup

    @pytest.mark.asyncio
    async def test_restore_invalid_body(self, client, csrf_headers, repository):
        """Test that entries missing required fields are rejected untouched."""
        existing = await repository.create()

        not_a_list = await client.post(
            "/api/backup", json={"id": "x"}, headers=csrf_headers
        )
        missing_title = await client.post(
            "/api/backup", json=[{"id": "x", "content": "c"}], headers=csrf_headers
        )

        assert not_a_list.status_code == 422
        assert missing_title.status_code == 422
        assert await repository.get_by_id(existing.id) is not None

    @pytest.mark.asyncio
    async def test_restore_duplicate_ids(self, client, csrf_headers):
        """Test that duplicate ids are a 400."""
        response = await client.post(
            "/api/backup",
            json=[diagram_payload("dupdup", "One"), diagram_payload("dupdup", "Two")],
            headers=csrf_headers,
        )

        assert response.status_code == 400


# =============================================================================
# Access API
# =============================================================================


class TestAccessApi:
    """Tests for the feature-flagged /api/access endpoints."""

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, client):
        """Test that every access endpoint is 403 while the flag is off."""
        responses = [
            await client.get("/api/access"),
            await client.post("/api/access", json={"content": "graph TD"}),
            await client.get("/api/access/abc123"),
        ]

        assert [r.status_code for r in responses] == [403, 403, 403]
        assert responses[0].json()["detail"] == "API Access Disabled"

    @pytest.mark.asyncio
    async def test_list_paginates_by_page(self, client, repository, monkeypatch):
        """Test page-number pagination when enabled."""
        monkeypatch.setattr(settings, "enable_api_access", True)
        for i in range(3):
            await repository.create(title=f"Diagram {i}")

        response = await client.get("/api/access", params={"page": 2, "limit": 2})

        data = response.json()
        assert response.status_code == 200
        assert len(data["data"]) == 1
        assert set(data["data"][0]) == {"id", "title"}
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}

    @pytest.mark.asyncio
    async def test_create_and_get(self, client, monkeypatch):
        """Test creating without a CSRF token and fetching by id."""
        monkeypatch.setattr(settings, "enable_api_access", True)

        created = await client.post(
            "/api/access", json={"title": "From API", "content": "graph LR"}
        )
        fetched = await client.get(f"/api/access/{created.json()['id']}")

        assert created.status_code == 201
        assert fetched.status_code == 200
        assert fetched.json()["content"] == "graph LR"

    @pytest.mark.asyncio
    async def test_create_requires_content(self, client, monkeypatch):
        """Test that content is mandatory on the access API."""
        monkeypatch.setattr(settings, "enable_api_access", True)

        response = await client.post("/api/access", json={"title": "Empty"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Content is required"

    @pytest.mark.asyncio
    async def test_get_missing(self, client, monkeypatch):
        """Test that an unknown id is a 404 when enabled."""
        monkeypatch.setattr(settings, "enable_api_access", True)

        response = await client.get("/api/access/nope00")

        assert response.status_code == 404
