from typing import List, Optional

from vaultimg.models import ModelDescriptor

MODEL_CATALOG: List[ModelDescriptor] = [
    ModelDescriptor(
        id="flux-schnell",
        version="black-forest-labs/flux-schnell",
        display_name="FLUX.1 [schnell]",
        description="Fastest FLUX model, tuned for local development and quick drafts.",
    ),
    ModelDescriptor(
        id="flux-dev",
        version="black-forest-labs/flux-dev",
        display_name="FLUX.1 [dev]",
        description="Open-weight FLUX model with better detail at a higher cost.",
    ),
    ModelDescriptor(
        id="flux-pro",
        version="black-forest-labs/flux-pro",
        display_name="FLUX.1 [pro]",
        description="Highest quality FLUX model with the best prompt adherence.",
    ),
]


def find_model(model_id: str) -> Optional[ModelDescriptor]:
    for descriptor in MODEL_CATALOG:
        if descriptor.id == model_id:
            return descriptor
    return None


def resolve_model(model_id: str) -> ModelDescriptor:
    """Returns the catalog entry for model_id, or the first entry when unknown."""
    return find_model(model_id) or MODEL_CATALOG[0]


def model_ids() -> List[str]:
    return [descriptor.id for descriptor in MODEL_CATALOG]
