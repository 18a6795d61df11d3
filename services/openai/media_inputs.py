"""Utilities to build multimodal input payloads for the Responses API."""

from typing import Any, Dict, List, Sequence

from models.coffee_record import MaterializedAsset


def image_part(asset: MaterializedAsset) -> Dict[str, Any]:
    """Return an `input_image` content part referencing an uploaded file."""
    return {"type": "input_image", "file_id": asset.file_id, "detail": "auto"}


def build_content_parts(assets: Sequence[MaterializedAsset], prompt_text: str) -> List[Dict[str, Any]]:
    """Compose the user content: every photo in order, then the prompt text last."""
    parts: List[Dict[str, Any]] = [image_part(asset) for asset in assets]
    parts.append({"type": "input_text", "text": prompt_text})
    return parts


def build_inputs(assets: Sequence[MaterializedAsset], prompt_text: str) -> List[Dict[str, Any]]:
    """Build the Responses API input array as a single user message."""
    return [
        {
            "type": "message",
            "role": "user",
            "content": build_content_parts(assets, prompt_text),
        }
    ]
