"""
Integration tests for the HTTP API, running the app in-process over ASGI
"""
import base64

import httpx
import pytest

from roomspark.main import create_app
from roomspark.services.room_pipeline import RoomTransformationPipeline

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def app(container):
    app = create_app()
    app.state.container = container
    app.state.pipeline = RoomTransformationPipeline(container)
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def headers(auth_header_factory):
    return auth_header_factory(USER_ID)


@pytest.fixture
def photo(image_factory):
    return "data:image/jpeg;base64," + base64.b64encode(image_factory(900, 600, image_format="JPEG")).decode()


async def create_project(client, headers, name=None):
    response = await client.post("/api/create-project", json={"name": name} if name else None, headers=headers)
    assert response.status_code == 200
    return response.json()["project"]


async def upload(client, headers, project_id, photo):
    response = await client.post("/api/upload", json={"photo": photo, "projectId": project_id}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def generate(client, headers, project_id, image_id, room_type="coastal"):
    response = await client.post(
        "/api/generate-image",
        json={"imageId": image_id, "projectId": project_id, "roomType": room_type},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestHealthAndAuth:
    @pytest.mark.integration
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    @pytest.mark.integration
    async def test_caller_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.integration
    async def test_missing_token(self, client):
        response = await client.get("/api/get-projects")

        assert response.status_code == 401
        assert response.json() == {"status": "error", "error": "Unauthorized"}

    @pytest.mark.integration
    async def test_invalid_token(self, client):
        response = await client.get("/api/get-projects", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401


class TestProjectRoutes:
    @pytest.mark.integration
    async def test_create_and_list(self, client, headers):
        first = await create_project(client, headers)
        second = await create_project(client, headers, "Kitchen")

        assert first["name"] == "Project 1"
        assert second["name"] == "Kitchen"

        response = await client.get("/api/get-projects", headers=headers)
        body = response.json()
        assert body["status"] == "success"
        assert {p["id"] for p in body["projects"]} == {first["id"], second["id"]}

    @pytest.mark.integration
    async def test_projects_are_per_user(self, client, headers, auth_header_factory):
        await create_project(client, headers)

        response = await client.get("/api/get-projects", headers=auth_header_factory(OTHER_USER_ID))
        assert response.json()["projects"] == []

    @pytest.mark.integration
    async def test_get_project_requires_id(self, client, headers):
        response = await client.get("/api/get-project", headers=headers)

        assert response.status_code == 400
        assert response.json() == {"status": "error", "error": "Project ID is required"}

    @pytest.mark.integration
    async def test_get_foreign_project(self, client, headers, auth_header_factory):
        project = await create_project(client, headers)

        response = await client.get(
            "/api/get-project", params={"projectId": project["id"]}, headers=auth_header_factory(OTHER_USER_ID)
        )

        assert response.status_code == 403
        assert response.json()["status"] == "error"


class TestImageFlow:
    @pytest.mark.integration
    async def test_upload_generate_discover(self, client, headers, photo):
        project = await create_project(client, headers)

        uploaded = await upload(client, headers, project["id"], photo)
        assert uploaded["status"] == "success"
        assert uploaded["blurhash"]
        assert uploaded["imageUrl"].startswith("http://test/files/user_uploads/")

        image = await client.get(uploaded["imageUrl"])
        assert image.status_code == 200
        assert image.headers["content-type"] == "image/png"

        generated = await generate(client, headers, project["id"], uploaded["imageId"])
        assert len(generated["descriptions"]) == 3

        response = await client.post(
            "/api/get-products",
            json={"imageId": generated["imageId"], "projectId": project["id"]},
            headers=headers,
        )
        products = response.json()["products"]
        assert len(products) == 5
        assert products[0]["isAffiliate"] is True
        assert "tag=roomspark-20" in products[0]["link"]

        response = await client.get("/api/get-project", params={"projectId": project["id"]}, headers=headers)
        details = response.json()
        assert details["project"]["image"] == uploaded["imageUrl"]
        assert [u["id"] for u in details["uploads"]] == [uploaded["imageId"]]
        assert details["generated"][0]["type"] == "generated"
        assert details["generated"][0]["descriptions"] == generated["descriptions"]
        assert len(details["products"]) == 5

    @pytest.mark.integration
    async def test_like_and_list_liked(self, client, headers, photo):
        project = await create_project(client, headers)
        uploaded = await upload(client, headers, project["id"], photo)
        generated = await generate(client, headers, project["id"], uploaded["imageId"])
        response = await client.post(
            "/api/get-products",
            json={"imageId": generated["imageId"], "projectId": project["id"], "useDescriptions": True},
            headers=headers,
        )
        product_id = response.json()["products"][1]["id"]

        response = await client.post("/api/like-product", json={"productId": product_id, "liked": True}, headers=headers)
        assert response.json() == {"status": "success", "productId": product_id}

        liked = (await client.get("/api/get-liked-products", headers=headers)).json()["products"]
        assert [p["id"] for p in liked] == [product_id]
        assert liked[0]["liked"] is True

    @pytest.mark.integration
    async def test_like_requires_boolean(self, client, headers):
        response = await client.post("/api/like-product", json={"productId": "p-1"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Liked value must be a boolean"

    @pytest.mark.integration
    async def test_upload_validation(self, client, headers):
        project = await create_project(client, headers)

        missing = await client.post("/api/upload", json={"projectId": project["id"]}, headers=headers)
        assert missing.status_code == 400
        assert missing.json()["error"] == "Photo is required"

        garbage = base64.b64encode(b"plain text, not a photo").decode()
        response = await client.post("/api/upload", json={"photo": garbage, "projectId": project["id"]}, headers=headers)
        assert response.status_code == 400
        assert response.json()["status"] == "error"

    @pytest.mark.integration
    async def test_upload_to_foreign_project(self, client, headers, auth_header_factory, photo):
        project = await create_project(client, headers)

        response = await client.post(
            "/api/upload",
            json={"photo": photo, "projectId": project["id"]},
            headers=auth_header_factory(OTHER_USER_ID),
        )

        assert response.status_code == 403
        assert response.json() == {"status": "error", "error": "Invalid project ID or unauthorized"}

    @pytest.mark.integration
    async def test_generate_unknown_image(self, client, headers):
        project = await create_project(client, headers)

        response = await client.post(
            "/api/generate-image", json={"imageId": "missing", "projectId": project["id"]}, headers=headers
        )

        assert response.status_code == 403
        assert response.json()["status"] == "error"


class TestFileRoute:
    @pytest.mark.integration
    async def test_rejects_bad_tokens(self, client, headers, photo):
        project = await create_project(client, headers)
        uploaded = await upload(client, headers, project["id"], photo)
        path = uploaded["imageUrl"].split("?")[0]

        no_token = await client.get(path)
        assert no_token.status_code == 403

        forged = await client.get(path, params={"token": "forged"})
        assert forged.status_code == 403

    @pytest.mark.integration
    async def test_token_is_bound_to_path(self, client, headers, photo):
        project = await create_project(client, headers)
        first = await upload(client, headers, project["id"], photo)
        second = await upload(client, headers, project["id"], photo)

        token = first["imageUrl"].split("token=")[1]
        response = await client.get(second["imageUrl"].split("?")[0], params={"token": token})

        assert response.status_code == 403
