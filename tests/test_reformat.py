"""
Tests for the data reformatter service, template refresh and endpoint.

Run with: pytest tests/test_reformat.py -v
"""
import asyncio
import json
from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from src.config import REFRESH_ON_DEMAND, REFRESH_PERIODIC
from src.exceptions import MissingFieldsError, UpstreamError
from src.services import ReformatService
from src.services.reformat_service import build_reformat_prompt
from src.utils.csv_utils import ReformatTemplate


def _template_transport(body: str, status_code: int = 200, calls: list = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url)
        return httpx.Response(status_code, text=body)
    return httpx.MockTransport(handler)


class TestFormatData:

    @pytest.mark.asyncio
    async def test_formats_model_output_under_header(self, reformat_service, client_factory, reformat_client):
        result = await reformat_service.format_data(
            data="Bob thirty five",
            prompt="normalize",
            model_name="gemini-2.5-flash",
            api_key="user-key",
        )

        assert result == "Name,Age\nBob,35"
        client_factory.assert_called_once_with("user-key")
        kwargs = reformat_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        for fragment in ("Name,Age", "Alice,30", "normalize", "Bob thirty five"):
            assert fragment in kwargs["contents"]

    @pytest.mark.asyncio
    async def test_missing_api_key_makes_no_remote_call(self, reformat_service, client_factory):
        with pytest.raises(MissingFieldsError) as exc_info:
            await reformat_service.format_data("Bob", "normalize", "gemini-2.5-flash", None)

        assert exc_info.value.fields == ["apiKey"]
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_failure(self, reformat_service, reformat_client):
        reformat_client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("invalid key"))

        with pytest.raises(UpstreamError):
            await reformat_service.format_data("Bob", "normalize", "gemini-2.5-flash", "bad-key")

    @pytest.mark.asyncio
    async def test_model_without_text(self, reformat_service, reformat_client):
        reformat_client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=None))

        with pytest.raises(UpstreamError):
            await reformat_service.format_data("Bob", "normalize", "gemini-2.5-flash", "key")

    @pytest.mark.asyncio
    async def test_client_reused_per_api_key(self, reformat_service, client_factory):
        await reformat_service.format_data("Bob", "normalize", "m", "key-a")
        await reformat_service.format_data("Eve", "normalize", "m", "key-a")
        await reformat_service.format_data("Ann", "normalize", "m", "key-b")

        assert [c.args[0] for c in client_factory.call_args_list] == ["key-a", "key-b"]

    @pytest.mark.asyncio
    async def test_non_string_data_sent_as_json(self, reformat_service, reformat_client):
        await reformat_service.format_data([{"name": "Bob", "age": 35}], "normalize", "m", "k")

        contents = reformat_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert '[{"name": "Bob", "age": 35}]' in contents

    def test_prompt_embeds_template(self):
        template = ReformatTemplate(headers=["Name", "Age"], sample_row="Alice,30")
        prompt = build_reformat_prompt(template, "Bob thirty five", "normalize")

        assert "Name,Age" in prompt
        assert "Alice,30" in prompt
        assert prompt.index("normalize") < prompt.index("Bob thirty five")


class TestTemplateRefresh:

    @pytest.mark.asyncio
    async def test_invalid_url_is_logged_not_raised(self, settings):
        service = ReformatService(replace(settings, template_url="http://[::1"))

        assert await service.refresh_template() is False
        assert not service.template.is_loaded

    @pytest.mark.asyncio
    async def test_periodic_loop_survives_bad_url(self, settings):
        service = ReformatService(
            replace(
                settings,
                template_url="http://[::1",
                template_refresh_policy=REFRESH_PERIODIC,
                template_refresh_interval_seconds=0.01,
            )
        )
        task = service.start_periodic_refresh()
        await asyncio.sleep(0.05)

        assert not task.done(), "Refresh loop should keep running after a failed fetch"
        await service.stop()

    @pytest.mark.asyncio
    async def test_fetch_json_mapping(self, settings):
        body = json.dumps({"Name": "Alice", "Age": 30})
        async with httpx.AsyncClient(transport=_template_transport(body)) as http:
            service = ReformatService(settings, http_client=http)
            assert await service.refresh_template() is True

        assert service.template.headers == ["Name", "Age"]
        assert service.template.sample_row == "Alice,30"

    @pytest.mark.asyncio
    async def test_fetch_plain_text(self, settings):
        async with httpx.AsyncClient(transport=_template_transport("Name,Age\nAlice,30\n")) as http:
            service = ReformatService(settings, http_client=http)
            assert await service.refresh_template() is True

        assert service.template.header_line == "Name,Age"

    @pytest.mark.asyncio
    async def test_fetch_failure_leaves_template_empty(self, settings):
        async with httpx.AsyncClient(transport=_template_transport("oops", status_code=500)) as http:
            service = ReformatService(settings, http_client=http)
            assert await service.refresh_template() is False

        assert not service.template.is_loaded
        assert service.template.headers == []

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_template(self, reformat_service):
        async with httpx.AsyncClient(transport=_template_transport("", status_code=404)) as http:
            reformat_service._http_client = http
            assert await reformat_service.refresh_template() is False

        assert reformat_service.template.headers == ["Name", "Age"]

    @pytest.mark.asyncio
    async def test_no_url_configured(self, settings):
        service = ReformatService(replace(settings, template_url=None))
        assert await service.refresh_template() is False

    @pytest.mark.asyncio
    async def test_on_demand_fetches_when_empty(self, settings, client_factory):
        calls = []
        async with httpx.AsyncClient(transport=_template_transport("Name,Age\nAlice,30", calls=calls)) as http:
            service = ReformatService(
                replace(settings, template_refresh_policy=REFRESH_ON_DEMAND),
                client_factory=client_factory,
                http_client=http,
            )
            result = await service.format_data("Bob thirty five", "normalize", "gemini-2.5-flash", "key")

        assert len(calls) == 1
        assert result == "Name,Age\nBob,35"

    @pytest.mark.asyncio
    async def test_static_policy_does_not_start_task(self, reformat_service):
        assert reformat_service.start_periodic_refresh() is None

    @pytest.mark.asyncio
    async def test_periodic_policy_refetches(self, settings):
        calls = []
        async with httpx.AsyncClient(transport=_template_transport("Name,Age\nAlice,30", calls=calls)) as http:
            service = ReformatService(
                replace(settings, template_refresh_policy=REFRESH_PERIODIC, template_refresh_interval_seconds=0.01),
                http_client=http,
            )
            task = service.start_periodic_refresh()
            assert task is not None
            await asyncio.sleep(0.05)
            await service.stop()

        assert len(calls) >= 2
        assert task.cancelled() or task.done()


class TestReformatEndpoints:

    @pytest.mark.asyncio
    async def test_format_data(self, client: httpx.AsyncClient):
        resp = await client.post(
            "/format-data",
            json={
                "data": "Bob thirty five",
                "prompt": "normalize",
                "modelName": "gemini-2.5-flash",
                "apiKey": "user-key",
            },
        )

        assert resp.status_code == 200, f"Unexpected status: {resp.status_code}, body: {resp.text}"
        assert resp.json() == {"convertedData": "Name,Age\nBob,35"}

    @pytest.mark.asyncio
    async def test_format_data_missing_api_key(self, client: httpx.AsyncClient, client_factory):
        resp = await client.post(
            "/format-data",
            json={"data": "Bob", "prompt": "normalize", "modelName": "gemini-2.5-flash"},
        )

        assert resp.status_code == 400
        assert resp.json()["details"]["missing"] == ["apiKey"]
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_format_data_model_failure(self, client: httpx.AsyncClient, reformat_client):
        reformat_client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("API key not valid"))

        resp = await client.post(
            "/format-data",
            json={"data": "Bob", "prompt": "normalize", "modelName": "m", "apiKey": "k"},
        )

        assert resp.status_code == 500
        assert "API key not valid" not in resp.text

    @pytest.mark.asyncio
    async def test_refresh_template_failure(self, client: httpx.AsyncClient, reformat_service):
        async with httpx.AsyncClient(transport=_template_transport("", status_code=503)) as http:
            reformat_service._http_client = http
            resp = await client.post("/refresh-template")

        assert resp.status_code == 500

    @pytest.mark.asyncio
    async def test_refresh_template(self, client: httpx.AsyncClient, reformat_service):
        async with httpx.AsyncClient(transport=_template_transport("Id,City\n1,Ghent")) as http:
            reformat_service._http_client = http
            resp = await client.post("/refresh-template")

        assert resp.status_code == 200
        assert resp.json() == {"loaded": True, "headers": ["Id", "City"]}

    @pytest.mark.asyncio
    async def test_health(self, client: httpx.AsyncClient):
        resp = await client.get("/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["contextLoaded"] is False
        assert data["templateLoaded"] is True

    @pytest.mark.asyncio
    async def test_format_data_without_body(self, client: httpx.AsyncClient, client_factory):
        resp = await client.post("/format-data")

        assert resp.status_code == 400, f"Unexpected status: {resp.status_code}, body: {resp.text}"
        assert resp.json()["details"]["missing"] == ["data", "prompt", "modelName", "apiKey"]
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_format_data_numeric_model_name(self, client: httpx.AsyncClient, client_factory):
        resp = await client.post(
            "/format-data",
            json={"data": "Bob", "prompt": "normalize", "modelName": 42, "apiKey": "k"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request body"
        client_factory.assert_not_called()
