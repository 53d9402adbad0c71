from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
import logging

from vaultimg.catalog import find_model, model_ids
from vaultimg.models import MAX_DIMENSION, MIN_DIMENSION, PluginSettings
from vaultimg.storage import HostStorage

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VAULTIMG__",
        extra="ignore",
    )

    vault_dir: str = Field(".", description="Root directory of the notes vault.")
    images_dir: str = Field(
        "images", description="Vault-relative folder that receives generated images."
    )
    api_base_url: str = Field(
        "https://api.replicate.com", description="Base URL of the predictions API."
    )
    poll_max_attempts: int = Field(
        30, ge=1, description="Status checks before a prediction is abandoned."
    )
    poll_interval_seconds: float = Field(
        2.0, ge=0, description="Delay between two status checks."
    )


settings = Settings()

SETTING_KEYS = {
    "api-token": "api_token",
    "default-width": "default_width",
    "default-height": "default_height",
    "default-model": "default_model",
}


def load_plugin_settings(storage: HostStorage) -> PluginSettings:
    """Merges the stored settings record over the defaults."""
    stored = storage.load_settings() or {}
    try:
        return PluginSettings.model_validate(stored)
    except ValidationError as e:
        logger.warning(f"Stored settings are invalid, falling back to defaults: {e}")
        defaults = PluginSettings()
        merged = defaults.to_record()
        for key, value in stored.items():
            candidate = {**merged, key: value}
            try:
                PluginSettings.model_validate(candidate)
            except ValidationError:
                continue
            merged = candidate
        return PluginSettings.model_validate(merged)


def update_setting(
    current: PluginSettings, key: str, value: str, storage: HostStorage
) -> PluginSettings:
    """Applies one edit, persists it and returns the new settings.

    Raises ValueError when the edit is rejected; nothing is saved then.
    """
    field = SETTING_KEYS.get(key)
    if field is None:
        raise ValueError(
            f"Unknown setting '{key}'. Valid settings: {', '.join(SETTING_KEYS)}"
        )

    if field == "api_token":
        new_value = value.strip()
    elif field in ("default_width", "default_height"):
        try:
            new_value = int(value)
        except ValueError:
            raise ValueError(f"'{value}' is not a whole number of pixels.") from None
        if not MIN_DIMENSION <= new_value <= MAX_DIMENSION:
            raise ValueError(
                f"{key} must be between {MIN_DIMENSION} and {MAX_DIMENSION} pixels."
            )
    else:
        if find_model(value) is None:
            raise ValueError(
                f"Unknown model '{value}'. Available models: {', '.join(model_ids())}"
            )
        new_value = value

    updated = current.model_copy(update={field: new_value})
    storage.save_settings(updated.to_record())
    logger.debug(f"Setting '{key}' updated and saved.")
    return updated
