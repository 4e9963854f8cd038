from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from dialogue_tutor.config.schema import ModelConfig
from dialogue_tutor.errors import ExternalCallError


class LLMClient:
    """Minimal helper for issuing chat completions."""

    def __init__(self, config: ModelConfig, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        self.config = config
        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key and client is None:
            raise ExternalCallError("OpenAI API key not configured. Please set OPENAI_API_KEY in your .env file.")
        self.client = client or AsyncOpenAI(api_key=key)

    async def generate(self, messages: List[Dict[str, Any]], **kwargs: Any) -> str:
        params = {
            "model": self.config.name,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_output_tokens,
        }
        params.update(kwargs)
        response = await self.client.chat.completions.create(messages=messages, **params)
        return response.choices[0].message.content or ""
