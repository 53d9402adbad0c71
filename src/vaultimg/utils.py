import httpx
import io
import logging
from datetime import datetime, timezone
from PIL import Image, UnidentifiedImageError
from typing import Optional

from vaultimg.errors import DownloadFailed
from vaultimg.storage import HostStorage

logger = logging.getLogger(__name__)

IMAGES_DIR = "images"


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC timestamp in the form 2024-05-01T12:30:45.123Z."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def generate_filename(now: Optional[datetime] = None) -> str:
    timestamp = iso_timestamp(now).replace(":", "-").replace(".", "-")
    return f"generated-image-{timestamp}.png"


def markdown_image(alt_text: str, path: str) -> str:
    alt = " ".join(alt_text.split()).replace("[", "(").replace("]", ")")
    return f"![{alt}]({path})"


def ensure_folder(storage: HostStorage, path: str = IMAGES_DIR) -> None:
    if not storage.exists(path):
        storage.create_folder(path)


def _check_image(content: bytes) -> None:
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.verify()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
    ) as e:
        raise DownloadFailed(f"Downloaded content is not a readable image: {e}") from e


async def fetch_and_persist(
    asset_url: str,
    storage: HostStorage,
    client: httpx.AsyncClient,
    images_dir: str = IMAGES_DIR,
    now: Optional[datetime] = None,
) -> str:
    """Downloads the asset and writes it into the vault.

    Returns the vault-relative path of the written file.
    """
    image_path = f"{images_dir.rstrip('/')}/{generate_filename(now)}"
    try:
        response = await client.get(asset_url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(
            f"HTTP error downloading image {asset_url}: {e.response.status_code} - {e.response.text}"
        )
        raise DownloadFailed("Unable to download the generated image.") from e
    except httpx.HTTPError as e:
        logger.error(f"Error downloading image {asset_url}: {e}")
        raise DownloadFailed("Unable to download the generated image.") from e

    _check_image(response.content)

    try:
        storage.write_binary(image_path, response.content)
    except OSError as e:
        logger.error(f"Failed to save image from {asset_url} to {image_path}: {e}")
        raise DownloadFailed(f"Unable to save the generated image to {image_path}.") from e

    logger.info(f"Image saved to {image_path}")
    return image_path
