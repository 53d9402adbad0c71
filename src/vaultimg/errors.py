class ImageGenerationError(Exception):
    """Base class for every failure raised while generating an image."""


class MissingApiToken(ImageGenerationError):
    pass


class InvalidDimensions(ImageGenerationError, ValueError):
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(
            f"Dimensions must be between 64 and 2048 pixels (got {width}x{height})."
        )


class RemoteRejected(ImageGenerationError):
    """The remote API refused a call or could not be reached."""


class GenerationFailed(ImageGenerationError):
    def __init__(self, message: str):
        self.remote_message = message
        super().__init__(message)


class GenerationTimedOut(ImageGenerationError):
    def __init__(self, job_id: str, attempts: int):
        self.job_id = job_id
        self.attempts = attempts
        super().__init__(
            f"Timeout: prediction {job_id} did not finish after {attempts} status checks."
        )


class NoOutputProduced(ImageGenerationError):
    pass


class DownloadFailed(ImageGenerationError):
    pass
