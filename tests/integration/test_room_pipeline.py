"""
Integration tests for the room transformation pipeline with the mock providers
"""
from unittest.mock import AsyncMock

import pytest

from roomspark.core.exceptions import DiscoveryError, PersistenceError
from roomspark.schemas.images import ImageType
from roomspark.services.image_generation.mock_image_service import MOCK_DESCRIPTIONS
from roomspark.services.image_generation.base import ImageGenerationResponse
from roomspark.services.room_pipeline import PipelineState

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class TestFullRun:
    @pytest.mark.integration
    async def test_run_completes(self, pipeline, project_service, project, image_factory):
        run = await pipeline.run(USER_ID, image_factory(1200, 900), style="scandinavian", project_id=project.id)

        assert run.succeeded, run.error
        assert run.history == [
            PipelineState.CREATED,
            PipelineState.UPLOADING,
            PipelineState.GENERATING,
            PipelineState.DISCOVERING,
            PipelineState.COMPLETE,
        ]
        assert run.upload.fingerprint
        assert run.generated.descriptions == MOCK_DESCRIPTIONS

        # Amazon results lead, with cleaned titles and the affiliate tag
        first = run.products[0]
        assert first.source == "Amazon"
        assert not first.title.startswith("Amazon.com:")
        assert "tag=roomspark-20" in first.link
        assert first.is_affiliate
        assert [p.source for p in run.products[1:]] == ["Bed Bath & Beyond", "The Home Depot", "Wayfair", "Walmart"]

        _, uploads, generated, products = await project_service.get_project_details(USER_ID, project.id)
        assert len(uploads) == 1
        assert len(generated) == 1
        assert generated[0].source == "mock"
        assert {p.id for p in products} == {p.id for p in run.products}

    @pytest.mark.integration
    async def test_run_creates_project_when_missing(self, pipeline, project_service, image_factory):
        run = await pipeline.run(USER_ID, image_factory())

        assert run.succeeded
        projects = await project_service.list_projects(USER_ID)
        assert [p.id for p, _ in projects] == [run.project_id]
        assert projects[0][1] == run.generated.image_url

    @pytest.mark.integration
    async def test_run_rejects_foreign_project(self, pipeline, project, image_factory):
        run = await pipeline.run(OTHER_USER_ID, image_factory(), project_id=project.id)

        assert run.state == PipelineState.FAILED
        assert run.status_code == 403
        assert run.upload is None

    @pytest.mark.integration
    async def test_undecodable_upload_fails_before_generation(self, pipeline, container, project):
        container.image_generation.generate_image = AsyncMock()

        run = await pipeline.run(USER_ID, b"definitely not an image", project_id=project.id)

        assert run.state == PipelineState.FAILED
        assert run.history[-2] == PipelineState.UPLOADING
        assert run.status_code == 400
        container.image_generation.generate_image.assert_not_called()


class TestStageFailures:
    @pytest.mark.integration
    async def test_generation_failure_stops_the_run(self, pipeline, container, project_service, project, image_factory):
        container.image_generation.generate_image = AsyncMock(
            return_value=ImageGenerationResponse(success=False, error="upstream 500")
        )
        container.product_service.get_products_from_image = AsyncMock()

        run = await pipeline.run(USER_ID, image_factory(), project_id=project.id)

        assert run.state == PipelineState.FAILED
        assert run.history[-2] == PipelineState.GENERATING
        assert run.error == "upstream 500"
        assert run.error_type == "ProviderError"
        container.product_service.get_products_from_image.assert_not_called()

        _, uploads, generated, _ = await project_service.get_project_details(USER_ID, project.id)
        assert len(uploads) == 1
        assert generated == []

    @pytest.mark.integration
    async def test_discovery_error_keeps_generated_image(self, pipeline, container, project_service, project, image_factory):
        container.product_service.get_products_from_image = AsyncMock(side_effect=DiscoveryError())

        run = await pipeline.run(USER_ID, image_factory(), project_id=project.id)

        assert run.state == PipelineState.FAILED
        assert run.error_type == "DiscoveryError"
        assert run.error == "Failed to get products from image"
        assert run.status_code == 502

        _, _, generated, products = await project_service.get_project_details(USER_ID, project.id)
        assert len(generated) == 1
        assert products == []

    @pytest.mark.integration
    async def test_product_save_failure_still_returns_products(
        self, pipeline, project_service, project, image_factory, monkeypatch
    ):
        monkeypatch.setattr(project_service, "save_products", AsyncMock(side_effect=PersistenceError("Failed to save products")))

        run = await pipeline.run(USER_ID, image_factory(), project_id=project.id)

        assert run.succeeded
        assert len(run.products) == 5
        assert run.products[0].is_affiliate

        _, _, generated, products = await project_service.get_project_details(USER_ID, project.id)
        assert len(generated) == 1
        assert products == []


class TestStageOperations:
    @pytest.fixture
    async def generated(self, pipeline, project, image_factory):
        uploaded = await pipeline.upload_image(USER_ID, project.id, image_factory())
        assert uploaded.success
        result = await pipeline.generate_styled_image(USER_ID, uploaded.data.id, project.id, "japandi")
        assert result.success
        return result.data

    @pytest.mark.integration
    async def test_upload_requires_ownership(self, pipeline, project, image_factory):
        result = await pipeline.upload_image(OTHER_USER_ID, project.id, image_factory())

        assert not result.success
        assert result.status_code == 403
        assert result.error == "Invalid project ID or unauthorized"

    @pytest.mark.integration
    async def test_upload_without_project(self, pipeline, image_factory):
        result = await pipeline.upload_image(USER_ID, "", image_factory())

        assert not result.success
        assert result.status_code == 400

    @pytest.mark.integration
    async def test_generation_uses_style_prompt(self, pipeline, container, project, image_factory):
        spy = AsyncMock(wraps=container.image_generation.generate_image)
        container.image_generation.generate_image = spy
        uploaded = await pipeline.upload_image(USER_ID, project.id, image_factory())

        result = await pipeline.generate_styled_image(USER_ID, uploaded.data.id, project.id, "japandi")

        assert result.success
        request = spy.call_args.args[0]
        assert request.image_url == uploaded.data.url
        assert "Japandi" in request.prompt

    @pytest.mark.integration
    async def test_generation_rejects_upload_from_other_project(self, pipeline, project_service, project, image_factory):
        other = await project_service.create_project(USER_ID, "Bedroom")
        uploaded = await pipeline.upload_image(USER_ID, other.id, image_factory())

        result = await pipeline.generate_styled_image(USER_ID, uploaded.data.id, project.id)

        assert not result.success
        assert result.status_code == 403

    @pytest.mark.integration
    async def test_discovery_by_descriptions(self, pipeline, project, generated):
        result = await pipeline.discover_products(USER_ID, generated.image_id, project.id, use_descriptions=True)

        assert result.success
        assert len(result.data) == len(MOCK_DESCRIPTIONS)
        assert [p.title for p in result.data] == MOCK_DESCRIPTIONS
        assert all("tag=roomspark-20" in p.link for p in result.data)

    @pytest.mark.integration
    async def test_discovery_by_descriptions_with_no_matches(self, pipeline, container, project, generated):
        container.product_service.get_products_by_amazon_search = AsyncMock(return_value=[])

        result = await pipeline.discover_products(USER_ID, generated.image_id, project.id, use_descriptions=True)

        assert not result.success
        assert result.error_type == "DiscoveryError"

    @pytest.mark.integration
    async def test_discovery_falls_back_to_visual_search(self, pipeline, container, image_storage, project, image_factory):
        stored = await image_storage.store_image(image_factory(), USER_ID, project.id, "openai", ImageType.GENERATED)

        result = await pipeline.discover_products(USER_ID, stored.id, project.id, use_descriptions=True)

        assert result.success
        assert len(result.data) == 5

    @pytest.mark.integration
    async def test_discovery_on_foreign_image(self, pipeline, project_service, generated):
        other = await project_service.create_project(OTHER_USER_ID)

        result = await pipeline.discover_products(OTHER_USER_ID, generated.image_id, other.id)

        assert not result.success
        assert result.status_code == 403

    @pytest.mark.integration
    async def test_like_toggle(self, pipeline, project_service, project, generated):
        discovered = await pipeline.discover_products(USER_ID, generated.image_id, project.id)
        product_id = discovered.data[0].id

        liked = await pipeline.toggle_product_like(USER_ID, product_id, True)
        assert liked.success
        assert liked.data == product_id
        assert [p.id for p in await project_service.list_liked_products(USER_ID)] == [product_id]

        foreign = await pipeline.toggle_product_like(OTHER_USER_ID, product_id, False)
        assert foreign.status_code == 403

        await pipeline.toggle_product_like(USER_ID, product_id, False)
        assert await project_service.list_liked_products(USER_ID) == []
