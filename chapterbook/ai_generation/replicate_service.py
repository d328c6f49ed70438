"""
Integration with Replicate for chapter illustration generation.
"""

from __future__ import annotations

import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import replicate

from .prompting import IllustrationPrompt, build_illustration_prompt

DEFAULT_MODEL = "black-forest-labs/flux-schnell"


def _build_flux_schnell_input(*, prompt: IllustrationPrompt, aspect_ratio: str) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "aspect_ratio": aspect_ratio,
        "num_outputs": 1,
        "output_format": "jpg",
        "output_quality": 90,
    }


def _build_flux_pro_input(*, prompt: IllustrationPrompt, aspect_ratio: str) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "aspect_ratio": aspect_ratio,
        "output_format": "jpg",
        "safety_tolerance": 2,
        "prompt_upsampling": True,
    }


def _build_imagen_input(*, prompt: IllustrationPrompt, aspect_ratio: str) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "negative_prompt": prompt.negative,
        "aspect_ratio": aspect_ratio,
        "safety_filter_level": "block_medium_and_above",
    }


def _build_sdxl_input(*, prompt: IllustrationPrompt, aspect_ratio: str) -> dict[str, Any]:
    width, height = _SDXL_DIMENSIONS.get(aspect_ratio, (1024, 1024))
    return {
        "prompt": prompt.positive,
        "negative_prompt": prompt.negative,
        "width": width,
        "height": height,
        "num_outputs": 1,
    }


_SDXL_DIMENSIONS = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "4:3": (1152, 896),
    "3:4": (896, 1152),
}


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-schnell": _build_flux_schnell_input,
    "black-forest-labs/flux-dev": _build_flux_schnell_input,
    "black-forest-labs/flux-1.1-pro": _build_flux_pro_input,
    "google/imagen-3": _build_imagen_input,
    "stability-ai/sdxl": _build_sdxl_input,
}


def _build_replicate_input_payload(
    *,
    model_identifier: str,
    prompt: IllustrationPrompt,
    aspect_ratio: str,
) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt, aspect_ratio=aspect_ratio)


class ReplicateImageGenerator:
    """
    Convenience wrapper around the Replicate client for chapter illustrations.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back to
        ``REPLICATE_MODEL`` and then to ``black-forest-labs/flux-schnell``.
    aspect_ratio:
        Aspect ratio requested from the model. Landscape suits a block above chapter text.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    request_timeout:
        HTTP timeout in seconds for the default client.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        aspect_ratio: str = "16:9",
        client: replicate.Client | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_MODEL
        self._aspect_ratio = aspect_ratio
        self._client = client or replicate.Client(api_token=self._api_token, timeout=request_timeout)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    def generate_image(self, image_prompt: str, **model_kwargs: Any) -> str | None:
        """
        Generate one illustration and return its URL, or ``None`` when the model returned nothing.

        ``model_kwargs`` are forwarded directly to the Replicate model invocation
        (e.g. ``seed``) and override the defaults.
        """
        prompt = build_illustration_prompt(image_prompt)
        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=prompt,
            aspect_ratio=self._aspect_ratio,
        )
        replicate_input.update(model_kwargs)

        outputs = self._client.run(self._model_identifier, input=replicate_input)
        urls = normalize_image_outputs(outputs)
        return urls[0] if urls else None


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of URL strings.
    """

    if raw is None:
        return []

    if isinstance(raw, str):
        return [raw] if raw.strip() else []

    if isinstance(raw, bytes):
        return [raw.decode("utf-8", errors="ignore")]

    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            normalized.extend(normalize_image_outputs(item))
        return normalized

    return [str(raw)]
