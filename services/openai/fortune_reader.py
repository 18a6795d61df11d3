"""Coffee cup reading via the OpenAI Responses API.

The request is a single user message: the uploaded cup photos in their
original order followed by the composed prompt text. The call is one blocking
request/response; failures are logged and re-raised to the caller, which owns
any retry policy.
"""

import logging
import time
from typing import Sequence

from openai import AsyncOpenAI

from models.coffee_record import MaterializedAsset
from services.openai.media_inputs import build_inputs
from services.openai.response_parser import extract_text, extract_usage
from utils.config import DEFAULT_AI_MODEL


class FortuneGenerationError(RuntimeError):
    """Raised when the model returns no usable text."""


class FortuneReader:
    """Request a free-form fortune interpretation from the model."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_AI_MODEL) -> None:
        if client is None:
            raise ValueError("OpenAI AsyncOpenAI client is required.")
        self.client = client
        self.model = model

    async def read_fortune(self, assets: Sequence[MaterializedAsset], prompt_text: str) -> str:
        """Generate the reading for the given photos and prompt.

        Args:
            assets: Registered photos, sent before the prompt in this order.
            prompt_text: Composed instruction text.

        Returns:
            The model's raw output text.

        Raises:
            FortuneGenerationError: If the response carries no output text.
            openai.OpenAIError: On transport, quota or API errors.
        """
        start = time.time()

        try:
            response = await self.client.responses.create(
                model=self.model,
                input=build_inputs(assets, prompt_text),
            )
        except Exception as exc:
            logging.error(f"OpenAI Responses API error: {exc}")
            raise

        text = extract_text(response)
        if not text.strip():
            logging.error("Fortune response contained no output text: %r", response)
            raise FortuneGenerationError("Model response did not include any text.")

        usage = extract_usage(response)
        logging.info(
            "Fortune generation latency: %.3fs (input_tokens=%s, output_tokens=%s)",
            time.time() - start,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return text
