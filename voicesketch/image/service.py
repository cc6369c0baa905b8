"""Generation request builder used by the orchestration engine.

Role in pipeline:
    - Turns a parsed description, optional style, quality tier and provider into
      a provider-agnostic `GenerationRequest`.
    - Builds the fal.ai JSON payload for a request.
    - Derives the regeneration prompt for a voice edit.

Prompt handling:
    Style modifiers are only ever appended. `GenerationRequest.enhanced_prompt`
    is derived from `prompt` and `style` on access; this module never stores it.

Determinism:
    Deterministic for fixed inputs, except for the random seed chosen by
    `build_provider_payload` when the request carries none.
"""

from __future__ import annotations

import random
from typing import Any

from voicesketch.core.commands import (
    AddElement,
    ChangeColor,
    ChangeStyle,
    EditType,
    Enhance,
    RemoveElement,
)
from voicesketch.core.models import AIProvider, GenerationRequest, ImageQuality
from voicesketch.core.styles import ArtStyle
from voicesketch.image import provider_config


def build_generation_request(
    description: str,
    style: ArtStyle | None = None,
    quality: ImageQuality = ImageQuality.HIGH,
    provider: AIProvider = AIProvider.FAL_AI,
    seed: int | None = None,
) -> GenerationRequest:
    """Build a request, substituting the configured default style when absent."""
    return GenerationRequest(
        prompt=description,
        style=style if style is not None else provider_config.DEFAULT_STYLE,
        provider=provider,
        seed=seed,
        quality=quality,
    )


def build_provider_payload(
    request: GenerationRequest,
    steps: int = provider_config.FAL_INFERENCE_STEPS,
    guidance_scale: float = provider_config.FAL_GUIDANCE_SCALE,
) -> dict[str, Any]:
    """Build the fal.ai request body.

    Returns:
        JSON-serializable dict with enhanced prompt, target size derived from the
        quality tier, inference parameters and a seed.
    """
    width, height = request.dimensions
    seed = request.seed
    if seed is None:
        seed = random.randint(0, provider_config.MAX_RANDOM_SEED)

    return {
        "prompt": request.enhanced_prompt,
        "image_size": {
            "width": width,
            "height": height,
        },
        "num_inference_steps": steps,
        "guidance_scale": guidance_scale,
        "seed": seed,
    }


def compose_edit_prompt(prompt: str, style: ArtStyle, edit: EditType) -> tuple[str, ArtStyle]:
    """Return the `(prompt, style)` pair to regenerate an artwork after an edit.

    The base prompt is kept as a prefix; edits only extend it or swap the style.
    """
    if isinstance(edit, AddElement):
        return f"{prompt}, with {edit.text}", style

    if isinstance(edit, RemoveElement):
        return f"{prompt}, without {edit.text}", style

    if isinstance(edit, ChangeColor):
        if edit.element:
            return f"{prompt}, {edit.element} in {edit.color}", style
        return f"{prompt}, {edit.color} color palette", style

    if isinstance(edit, ChangeStyle):
        return prompt, edit.style

    if isinstance(edit, Enhance):
        return f"{prompt}, enhanced {edit.aspect} detail", style

    raise TypeError(f"Unsupported edit type: {type(edit).__name__}")
