import asyncio
import httpx
import logging
from typing import Awaitable, Callable, Optional

from vaultimg.catalog import resolve_model
from vaultimg.errors import (
    GenerationFailed,
    GenerationTimedOut,
    MissingApiToken,
    RemoteRejected,
)
from vaultimg.models import GenerationRequest, Job, JobStatus
from vaultimg.providers.base_provider import BaseImageProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.replicate.com"
MAX_ATTEMPTS = 30
POLL_INTERVAL_SECONDS = 2.0


def _first_output(output) -> Optional[str]:
    if isinstance(output, list):
        output = output[0] if output else None
    if isinstance(output, str) and output:
        return output
    return None


class ReplicateProvider(BaseImageProvider):
    """Client for the Replicate predictions API.

    A prediction is created with one POST, then its status is read every
    ``poll_interval`` seconds until it succeeds, fails, or ``max_attempts``
    status checks have been spent. Only the exact strings ``succeeded`` and
    ``failed`` end the loop; any other status keeps it polling.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        max_attempts: int = MAX_ATTEMPTS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not api_token or not api_token.strip():
            raise MissingApiToken("A Replicate API token is required.")
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self._sleep = sleep
        self.async_client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Token {api_token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _call(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = await self.async_client.request(method, url, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteRejected(
                f"{method} {url} failed with status {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteRejected(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            raise RemoteRejected(f"{method} {url} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise RemoteRejected(f"{method} {url} returned an unexpected payload")
        return data

    async def submit(self, request: GenerationRequest) -> Job:
        model = resolve_model(request.model_identifier)
        if model.id != request.model_identifier:
            logger.warning(
                f"Unknown model '{request.model_identifier}', using '{model.id}' instead."
            )
        payload = {
            "version": model.version,
            "input": {
                "prompt": request.prompt,
                "width": request.width,
                "height": request.height,
            },
        }
        logger.debug(f"Creating prediction with model {model.id} ({request.width}x{request.height})")
        data = await self._call("POST", "/v1/predictions", json=payload)

        job_id = data.get("id")
        if not job_id:
            raise RemoteRejected("The predictions API did not return a prediction id.")
        job = Job(id=str(job_id), status=str(data.get("status", "")))
        logger.info(f"Prediction {job.id} created with status '{job.status}'")
        return job

    async def poll(self, job_id: str) -> Job:
        data = await self._call("GET", f"/v1/predictions/{job_id}")
        error = data.get("error")
        return Job(
            id=job_id,
            status=str(data.get("status", "")),
            output_url=_first_output(data.get("output")),
            error=str(error) if error else None,
        )

    async def await_completion(self, job_id: str) -> Optional[str]:
        for attempt in range(1, self.max_attempts + 1):
            job = await self.poll(job_id)
            logger.debug(
                f"Prediction {job_id} status '{job.status}' (check {attempt}/{self.max_attempts})"
            )

            if not job.is_terminal:
                await self._sleep(self.poll_interval)
                continue

            if job.status == JobStatus.FAILED.value:
                raise GenerationFailed(job.error or "The image generation failed.")

            if job.output_url is None:
                logger.warning(f"Prediction {job_id} succeeded without a usable output")
            return job.output_url

        raise GenerationTimedOut(job_id, self.max_attempts)

    async def close(self):
        await self.async_client.aclose()
