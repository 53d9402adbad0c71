"""Tests for the end-to-end generate-and-insert flow."""

from __future__ import annotations

import httpx
import pytest

from vaultimg.core import (
    FAILURE_NOTICE,
    MISSING_TOKEN_NOTICE,
    SUCCESS_NOTICE,
    build_provider,
    generate_and_insert,
)
from vaultimg.errors import GenerationFailed, MissingApiToken
from vaultimg.models import GenerationRequest, Job, PluginSettings
from vaultimg.providers.base_provider import BaseImageProvider
from vaultimg.providers.replicate_provider import ReplicateProvider

REQUEST = GenerationRequest(
    prompt="a lighthouse at dusk", width=512, height=512, model_identifier="flux-schnell"
)
SETTINGS = PluginSettings(api_token="r8_test")


class ScriptedProvider(BaseImageProvider):
    def __init__(self, output=None, error: Exception | None = None):
        self.output = output
        self.error = error
        self.submitted: list[GenerationRequest] = []

    async def submit(self, request: GenerationRequest) -> Job:
        self.submitted.append(request)
        return Job(id="abc123", status="starting")

    async def await_completion(self, job_id: str):
        if self.error is not None:
            raise self.error
        return self.output


def download_client(png_bytes: bytes, status: int = 200) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=png_bytes)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_success_inserts_markdown_link(storage, editor, png_bytes):
    provider = ScriptedProvider(output="https://cdn.test/out.png")
    async with download_client(png_bytes) as client:
        outcome = await generate_and_insert(
            REQUEST, SETTINGS, storage, editor, provider=provider, download_client=client
        )

    assert outcome.ok
    assert outcome.notice == SUCCESS_NOTICE
    assert outcome.image_url == "https://cdn.test/out.png"
    assert outcome.saved_path.startswith("images/generated-image-")
    assert storage.files[outcome.saved_path] == png_bytes
    assert "images" in storage.folders
    assert editor.inserted == [f"![a lighthouse at dusk]({outcome.saved_path})"]


@pytest.mark.anyio
@pytest.mark.parametrize("token", ["", "   "])
async def test_blank_token_short_circuits(storage, editor, token):
    provider = ScriptedProvider(output="https://cdn.test/out.png")
    outcome = await generate_and_insert(
        REQUEST, PluginSettings(api_token=token), storage, editor, provider=provider
    )

    assert not outcome.ok
    assert outcome.notice == MISSING_TOKEN_NOTICE
    assert provider.submitted == []
    assert storage.folders == set()
    assert editor.inserted == []


@pytest.mark.anyio
async def test_no_output_is_reported_as_failure(storage, editor, png_bytes):
    provider = ScriptedProvider(output=None)
    async with download_client(png_bytes) as client:
        outcome = await generate_and_insert(
            REQUEST, SETTINGS, storage, editor, provider=provider, download_client=client
        )

    assert not outcome.ok
    assert outcome.notice == FAILURE_NOTICE
    assert "no image" in outcome.error
    assert storage.files == {}
    assert editor.inserted == []


@pytest.mark.anyio
async def test_remote_failure_is_reported_with_generic_notice(storage, editor, png_bytes):
    provider = ScriptedProvider(error=GenerationFailed("bad prompt"))
    async with download_client(png_bytes) as client:
        outcome = await generate_and_insert(
            REQUEST, SETTINGS, storage, editor, provider=provider, download_client=client
        )

    assert outcome.notice == FAILURE_NOTICE
    assert outcome.error == "bad prompt"
    assert editor.inserted == []


@pytest.mark.anyio
async def test_download_failure_keeps_image_url(storage, editor, png_bytes):
    provider = ScriptedProvider(output="https://cdn.test/out.png")
    async with download_client(png_bytes, status=503) as client:
        outcome = await generate_and_insert(
            REQUEST, SETTINGS, storage, editor, provider=provider, download_client=client
        )

    assert outcome.notice == FAILURE_NOTICE
    assert outcome.image_url == "https://cdn.test/out.png"
    assert outcome.saved_path is None
    assert editor.inserted == []


@pytest.mark.anyio
async def test_failures_are_logged(storage, editor, caplog):
    provider = ScriptedProvider(error=GenerationFailed("bad prompt"))
    async with httpx.AsyncClient() as client:
        await generate_and_insert(
            REQUEST, SETTINGS, storage, editor, provider=provider, download_client=client
        )

    assert any("bad prompt" in record.getMessage() for record in caplog.records)
    assert any(record.exc_info for record in caplog.records)


@pytest.mark.anyio
async def test_malformed_remote_output_is_no_output(storage, editor, png_bytes, sleep):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(201, json={"id": "abc123", "status": "starting"})
        return httpx.Response(
            200, json={"id": "abc123", "status": "succeeded", "output": [{"url": "x"}]}
        )

    provider = ReplicateProvider("r8_test", transport=httpx.MockTransport(handler), sleep=sleep)
    async with download_client(png_bytes) as client:
        outcome = await generate_and_insert(
            REQUEST, SETTINGS, storage, editor, provider=provider, download_client=client
        )
    await provider.close()

    assert outcome.notice == FAILURE_NOTICE
    assert "no image" in outcome.error
    assert editor.inserted == []


def test_build_provider_requires_token():
    with pytest.raises(MissingApiToken):
        build_provider(PluginSettings(api_token="  "))
