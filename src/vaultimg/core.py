from vaultimg.config import settings as app_settings
from vaultimg.editor import HostEditor
from vaultimg.errors import MissingApiToken, NoOutputProduced
from vaultimg.models import GenerationOutcome, GenerationRequest, PluginSettings
from vaultimg.providers.base_provider import BaseImageProvider
from vaultimg.providers.replicate_provider import ReplicateProvider
from vaultimg.storage import HostStorage
from vaultimg.utils import ensure_folder, fetch_and_persist, markdown_image
import httpx
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MISSING_TOKEN_NOTICE = (
    "⚠️ Please set your Replicate API token first: vaultimg settings set api-token <token>"
)
SUCCESS_NOTICE = "✅ Image generated and inserted successfully"
FAILURE_NOTICE = "❌ Error generating image. Check the logs for details."


def require_token(plugin_settings: PluginSettings) -> str:
    token = plugin_settings.api_token.strip()
    if not token:
        raise MissingApiToken("No Replicate API token configured.")
    return token


def build_provider(plugin_settings: PluginSettings) -> ReplicateProvider:
    return ReplicateProvider(
        require_token(plugin_settings),
        base_url=app_settings.api_base_url,
        max_attempts=app_settings.poll_max_attempts,
        poll_interval=app_settings.poll_interval_seconds,
    )


async def generate_and_insert(
    request: GenerationRequest,
    plugin_settings: PluginSettings,
    storage: HostStorage,
    editor: HostEditor,
    provider: Optional[BaseImageProvider] = None,
    download_client: Optional[httpx.AsyncClient] = None,
    images_dir: Optional[str] = None,
) -> GenerationOutcome:
    """Runs one generation end to end and inserts the image link.

    Never raises: every failure becomes an outcome carrying a user notice,
    with the detailed error in ``error``.
    """
    try:
        require_token(plugin_settings)
    except MissingApiToken as e:
        logger.warning("Generation requested without a Replicate API token")
        return GenerationOutcome(notice=MISSING_TOKEN_NOTICE, error=str(e))

    images_dir = images_dir or app_settings.images_dir
    owns_provider = provider is None
    owns_client = download_client is None
    image_url = None
    try:
        if owns_provider:
            provider = build_provider(plugin_settings)
        if owns_client:
            download_client = httpx.AsyncClient(follow_redirects=True)

        ensure_folder(storage, images_dir)

        image_url = await provider.generate(request)
        if not image_url:
            raise NoOutputProduced("The prediction succeeded but returned no image.")

        saved_path = await fetch_and_persist(
            image_url, storage, download_client, images_dir=images_dir
        )
        markdown = markdown_image(request.prompt, saved_path)
        editor.replace_selection(markdown)
    except Exception as e:
        logger.exception(f"Error generating image for prompt {request.prompt!r}: {e}")
        return GenerationOutcome(
            image_url=image_url,
            notice=FAILURE_NOTICE,
            error=str(e) or type(e).__name__,
        )
    finally:
        if owns_provider and provider is not None:
            await provider.close()
        if owns_client and download_client is not None:
            await download_client.aclose()

    return GenerationOutcome(
        image_url=image_url,
        saved_path=saved_path,
        markdown=markdown,
        notice=SUCCESS_NOTICE,
    )
