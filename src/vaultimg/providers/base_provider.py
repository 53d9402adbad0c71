from abc import ABC, abstractmethod
from vaultimg.models import GenerationRequest, Job
from typing import Optional


class BaseImageProvider(ABC):
    @abstractmethod
    async def submit(self, request: GenerationRequest) -> Job:
        """
        Creates a remote generation job for the request.
        Returns the job as first reported by the remote service.
        """
        pass

    @abstractmethod
    async def await_completion(self, job_id: str) -> Optional[str]:
        """
        Waits for the job to reach a terminal state.
        Returns the output asset URL, or None when the job succeeded without output.
        """
        pass

    async def generate(self, request: GenerationRequest) -> Optional[str]:
        job = await self.submit(request)
        return await self.await_completion(job.id)

    async def close(self):
        pass
