"""
PawSpot API — Locations Endpoint Tests
=======================================

What:  End-to-end HTTP tests through the FastAPI app.
How:   httpx AsyncClient + ASGITransport; the DB session and photo service
       dependencies point at the per-test SQLite database and temp directory.

What we test:
    ✅ Envelope shapes and status codes of every route
    ✅ Query string filtering, projection, sorting and pagination
    ✅ Error bodies are {"success": false, "error": ...}
    ✅ Photo upload and download
"""

import json
import uuid
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.datastructures import UploadFile

BASE = "/api/v1/locations"


async def create(client, payload, **overrides):
    body = dict(payload)
    body.update(overrides)
    response = await client.post(BASE, json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateAndGet:

    @pytest.mark.asyncio
    async def test_create_then_get(self, client, location_payload):
        created = await create(client, location_payload)

        response = await client.get(f"{BASE}/{created['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["title"] == location_payload["title"]
        assert data["slug"] == "happy-tails-daycare"
        assert data["photo"] == "no-photo.jpg"
        assert data["animalTypes"] == ["Dog", "Cat"]
        assert data["services"] == ["Food", "Walking"]
        assert data["averageRating"] == 4.5
        assert data["location"]["city"] == "Boston"
        assert data["createdAt"]

    @pytest.mark.asyncio
    async def test_server_owned_fields_ignored(self, client, location_payload):
        created = await create(
            client, location_payload, slug="custom", photo="mine.jpg", createdAt="2000-01-01T00:00:00Z"
        )
        assert created["slug"] == "happy-tails-daycare"
        assert created["photo"] == "no-photo.jpg"
        assert not created["createdAt"].startswith("2000")

    @pytest.mark.asyncio
    async def test_duplicate_title(self, client, location_payload):
        await create(client, location_payload)
        response = await client.post(BASE, json=location_payload)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Duplicate field value entered"}

    @pytest.mark.asyncio
    async def test_validation_messages(self, client):
        response = await client.post(BASE, json={"title": "x" * 51, "animalTypes": ["Bird"]})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == (
            "Title can not be more than 50 characters, Please add description, "
            "Please add an address, `Bird` is not a valid animal type, "
            "Please add at least one service"
        )

    @pytest.mark.asyncio
    async def test_wrong_type_in_body(self, client, location_payload):
        response = await client.post(BASE, json={**location_payload, "averageRating": "great"})
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "averageRating" in response.json()["error"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    async def test_non_finite_rating_rejected(self, client, location_payload, literal):
        # Python's json module reads these literals as floats
        body = json.dumps({**location_payload, "averageRating": 0}).replace(
            '"averageRating": 0', f'"averageRating": {literal}'
        )
        response = await client.post(
            BASE, content=body, headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "averageRating" in response.json()["error"]
        assert (await client.get(BASE)).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, client):
        missing = uuid.uuid4()
        response = await client.get(f"{BASE}/{missing}")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": f"Location not found with id of {missing}",
        }

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, client):
        response = await client.get(f"{BASE}/5d725a1b")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_update(self, client, location_payload):
        created = await create(client, location_payload)

        response = await client.put(
            f"{BASE}/{created['id']}", json={"averageRating": 3, "services": ["Toys"]}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["averageRating"] == 3
        assert data["services"] == ["Toys"]
        assert data["title"] == created["title"]
        assert data["slug"] == created["slug"]
        assert data["createdAt"] == created["createdAt"]

    @pytest.mark.asyncio
    async def test_update_invalid(self, client, location_payload):
        created = await create(client, location_payload)
        response = await client.put(f"{BASE}/{created['id']}", json={"averageRating": 7})
        assert response.status_code == 400
        assert response.json()["error"] == "Rating can not be more than 5"

        unchanged = await client.get(f"{BASE}/{created['id']}")
        assert unchanged.json()["data"]["averageRating"] == 4.5

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, client):
        response = await client.put(f"{BASE}/{uuid.uuid4()}", json={"title": "New"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, client, location_payload):
        created = await create(client, location_payload)

        response = await client.delete(f"{BASE}/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}
        assert (await client.get(f"{BASE}/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, client):
        response = await client.delete(f"{BASE}/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestListLocations:

    @pytest.mark.asyncio
    async def test_empty(self, client):
        response = await client.get(BASE)
        assert response.status_code == 200
        assert response.json() == {
            "total": 0,
            "success": True,
            "count": 0,
            "pagination": {},
            "data": [],
        }

    @pytest.mark.asyncio
    async def test_select_sort_page(self, client, location_payload):
        for i in range(12):
            await create(client, location_payload, title=f"Spot {i:02d}", address=f"{i} Main St")

        response = await client.get(
            BASE, params={"select": "title,address", "sort": "-title", "page": 2, "limit": 5}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["total"] == 12
        assert body["count"] == 5
        assert body["pagination"] == {
            "next": {"page": 3, "limit": 5},
            "prev": {"page": 1, "limit": 5},
        }
        assert [item["title"] for item in body["data"]] == [
            "Spot 06",
            "Spot 05",
            "Spot 04",
            "Spot 03",
            "Spot 02",
        ]
        assert all(set(item) == {"id", "title", "address"} for item in body["data"])
        assert body["data"][0]["address"] == "6 Main St"

    @pytest.mark.asyncio
    async def test_default_limit_and_newest_first(self, client, location_payload):
        for i in range(7):
            await create(client, location_payload, title=f"Spot {i}")

        body = (await client.get(BASE)).json()

        assert body["count"] == 5
        assert body["pagination"] == {"next": {"page": 2, "limit": 5}}
        created_at = [item["createdAt"] for item in body["data"]]
        assert created_at == sorted(created_at, reverse=True)

    @pytest.mark.asyncio
    async def test_operator_filter(self, client, location_payload):
        for i, rating in enumerate([1, 2, 3, 4, 5]):
            await create(client, location_payload, title=f"Rated {i}", averageRating=rating)

        body = (await client.get(f"{BASE}?averageRating[gt]=3&sort=averageRating")).json()

        assert body["total"] == 2
        assert [item["averageRating"] for item in body["data"]] == [4, 5]

    @pytest.mark.asyncio
    async def test_range_filter(self, client, location_payload):
        for i, rating in enumerate([1, 2, 3, 4, 5]):
            await create(client, location_payload, title=f"Rated {i}", averageRating=rating)

        body = (await client.get(f"{BASE}?averageRating[gte]=2&averageRating[lte]=4")).json()
        assert body["total"] == 3

    @pytest.mark.asyncio
    async def test_in_filter_on_list_field(self, client, location_payload):
        await create(client, location_payload, title="Food only", services=["Food"])
        await create(client, location_payload, title="Toys only", services=["Toys"])
        await create(client, location_payload, title="Walks only", services=["Walking"])

        body = (await client.get(f"{BASE}?services[in]=Toys,Walking&sort=title")).json()

        assert [item["title"] for item in body["data"]] == ["Toys only", "Walks only"]

    @pytest.mark.asyncio
    async def test_location_city_filter(self, client, location_payload):
        await create(client, location_payload, title="In Boston")
        await create(
            client,
            location_payload,
            title="In Austin",
            location={"city": "Austin", "state": "TX"},
        )

        dotted = (await client.get(f"{BASE}?location.city=Austin")).json()
        bracketed = (await client.get(f"{BASE}?location[city]=Austin")).json()

        assert [item["title"] for item in dotted["data"]] == ["In Austin"]
        assert [item["title"] for item in bracketed["data"]] == ["In Austin"]

    @pytest.mark.asyncio
    async def test_total_counts_filtered_records(self, client, location_payload):
        for i in range(6):
            await create(client, location_payload, title=f"Dog place {i}", animalTypes=["Dog"])
        for i in range(3):
            await create(client, location_payload, title=f"Cat place {i}", animalTypes=["Cat"])

        body = (await client.get(f"{BASE}?animalTypes=Cat")).json()

        assert body["total"] == 3
        assert body["count"] == 3
        assert body["pagination"] == {}

    @pytest.mark.asyncio
    async def test_bad_paging_values_fall_back(self, client, location_payload):
        await create(client, location_payload)
        body = (await client.get(f"{BASE}?page=-1&limit=abc")).json()
        assert body["count"] == 1
        assert body["pagination"] == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "query",
        [
            "page=99999999999999999999",
            "limit=99999999999999999999",
            "page=99999999999999999999&limit=99999999999999999999",
            "page=9223372036854775807&limit=9223372036854775807",
        ],
    )
    async def test_huge_paging_values_fall_back(self, client, location_payload, query):
        await create(client, location_payload)
        response = await client.get(f"{BASE}?{query}")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["count"] == 1

    @pytest.mark.asyncio
    async def test_unknown_filter_field(self, client):
        response = await client.get(f"{BASE}?price[lt]=10")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Unknown field 'price'"}

    @pytest.mark.asyncio
    async def test_unsortable_field(self, client):
        response = await client.get(f"{BASE}?sort=services")
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot sort by field 'services'"


class TestPhotoUpload:

    @pytest.mark.asyncio
    async def test_upload_and_download(self, client, location_payload, sample_image_bytes, upload_dir):
        created = await create(client, location_payload)

        response = await client.put(
            f"{BASE}/{created['id']}/photo",
            files={"file": ("dog.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 200
        expected = f"photo_{created['id']}.jpg"
        assert response.json() == {"success": True, "data": expected}
        assert (upload_dir / expected).exists()

        record = (await client.get(f"{BASE}/{created['id']}")).json()["data"]
        assert record["photo"] == expected

        download = await client.get(f"/uploads/{expected}")
        assert download.status_code == 200
        assert download.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_missing_file(self, client, location_payload):
        created = await create(client, location_payload)
        response = await client.put(f"{BASE}/{created['id']}/photo")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Please upload a file"}

    @pytest.mark.asyncio
    async def test_not_an_image(self, client, location_payload):
        created = await create(client, location_payload)
        response = await client.put(
            f"{BASE}/{created['id']}/photo",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Please upload an image file"

    @pytest.mark.asyncio
    async def test_too_large(self, client, location_payload, photos):
        created = await create(client, location_payload)
        response = await client.put(
            f"{BASE}/{created['id']}/photo",
            files={"file": ("big.jpg", b"x" * (photos.max_size + 1), "image/jpeg")},
        )
        assert response.status_code == 400
        assert response.json()["error"] == f"Please upload an image less than {photos.max_size}"

    @pytest.mark.asyncio
    async def test_oversized_upload_read_is_bounded(self, client, location_payload, photos, upload_dir):
        created = await create(client, location_payload)
        original_read = UploadFile.read
        read_sizes = []

        async def recording_read(self, size=-1):
            read_sizes.append(size)
            return await original_read(self, size)

        with patch.object(UploadFile, "read", recording_read):
            response = await client.put(
                f"{BASE}/{created['id']}/photo",
                files={"file": ("big.jpg", b"x" * (photos.max_size * 10), "image/jpeg")},
            )

        assert response.status_code == 400
        assert response.json()["error"] == f"Please upload an image less than {photos.max_size}"
        assert read_sizes == [photos.max_size + 1]
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_declared_image_with_text_content(self, client, location_payload, upload_dir):
        created = await create(client, location_payload)
        response = await client.put(
            f"{BASE}/{created['id']}/photo",
            files={"file": ("cat.png", b"just some text, honest", "image/png")},
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Please upload an image file"}
        assert list(upload_dir.iterdir()) == []

        record = (await client.get(f"{BASE}/{created['id']}")).json()["data"]
        assert record["photo"] == "no-photo.jpg"

    @pytest.mark.asyncio
    async def test_png_upload(self, client, location_payload, sample_png_bytes):
        created = await create(client, location_payload)
        response = await client.put(
            f"{BASE}/{created['id']}/photo",
            files={"file": ("dot.png", sample_png_bytes, "image/png")},
        )
        assert response.status_code == 200
        assert response.json()["data"] == f"photo_{created['id']}.png"

    @pytest.mark.asyncio
    async def test_unknown_location(self, client, sample_image_bytes):
        response = await client.put(
            f"{BASE}/{uuid.uuid4()}/photo",
            files={"file": ("dog.jpg", sample_image_bytes, "image/jpeg")},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_download_unknown_file(self, client):
        response = await client.get("/uploads/nothing.jpg")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestAppPlumbing:

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        response = await client.get(BASE, headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_generated_request_id(self, client):
        response = await client.get(BASE)
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/v1/nothing")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not Found"}

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "uptimeSeconds" in body

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, client):
        from pawspot.main import app
        from pawspot.routes.locations import get_location_service

        class Exploding:
            async def get_location(self, db, location_id):
                raise RuntimeError("connection string with password")

        app.dependency_overrides[get_location_service] = lambda: Exploding()
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as raw:
            response = await raw.get(f"{BASE}/{uuid.uuid4()}")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Server Error"}
