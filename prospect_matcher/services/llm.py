"""
LLM provider abstractions.

A provider performs exactly one remote call per operation: a JSON-object chat
completion or a text embedding. Transport, HTTP and timeout failures are
raised as ProviderError carrying the underlying exception.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import openai
import requests
from openai import AsyncOpenAI

from prospect_matcher.models.ai_settings import AISettings, EmbeddingSettings, LLMSettings, ProviderType
from prospect_matcher.utils.exceptions import ConfigurationError, ProviderError
from prospect_matcher.utils.logging_config import get_logger

logger = get_logger(__name__)


class LLMProvider(ABC):
    """Abstract interface for hosted language-model services"""

    name = "provider"

    @abstractmethod
    async def complete_json(self, system_prompt: str, prompt: str) -> Optional[str]:
        """Run one chat completion constrained to a JSON object.

        Returns the raw message content, or None when the reply carried none.
        """

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Return the embedding vector for text."""


class OpenAIProvider(LLMProvider):
    """Provider backed by the OpenAI chat completion and embedding APIs"""

    name = "openai"

    def __init__(self, llm_settings: LLMSettings, embedding_settings: EmbeddingSettings = None, client: AsyncOpenAI = None):
        self.llm_settings = llm_settings
        self.embedding_settings = embedding_settings or EmbeddingSettings()
        if client is None:
            if not llm_settings.api_key:
                raise ConfigurationError(
                    "Missing OpenAI API key. Please set OPENAI_API_KEY", config_key="OPENAI_API_KEY"
                )
            client_kwargs = {"api_key": llm_settings.api_key, "timeout": llm_settings.timeout, "max_retries": 0}
            if llm_settings.base_url:
                client_kwargs["base_url"] = llm_settings.base_url
            client = AsyncOpenAI(**client_kwargs)
        self.client = client

    async def complete_json(self, system_prompt: str, prompt: str) -> Optional[str]:
        model = self.llm_settings.model_name
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.llm_settings.temperature,
                response_format={"type": "json_object"},
                timeout=self.llm_settings.timeout,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI completion failed ({model}): {e}")
            raise ProviderError(
                f"OpenAI completion request failed: {e}", provider=self.name, model_name=model, cause=e
            ) from e

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def embed(self, text: str) -> List[float]:
        model = self.embedding_settings.model_name
        try:
            response = await self.client.embeddings.create(
                model=model,
                input=text,
                timeout=self.embedding_settings.timeout,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI embedding failed ({model}): {e}")
            raise ProviderError(
                f"OpenAI embedding request failed: {e}", provider=self.name, model_name=model, cause=e
            ) from e

        if not response.data:
            raise ProviderError("OpenAI embedding response contained no vectors", provider=self.name, model_name=model)
        return list(response.data[0].embedding)


class OllamaProvider(LLMProvider):
    """Provider backed by a local or self-hosted Ollama server"""

    name = "ollama"

    def __init__(self, llm_settings: LLMSettings, embedding_settings: EmbeddingSettings = None):
        self.llm_settings = llm_settings
        self.embedding_settings = embedding_settings or EmbeddingSettings(model_name="nomic-embed-text")
        self.base_url = (llm_settings.base_url or "http://localhost:11434").rstrip("/")

    def _post(self, path: str, payload: dict, timeout: float, model: str) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.post(url, json=payload, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.error(f"Ollama request to {url} failed: {e}")
            raise ProviderError(
                f"Ollama request failed: {e}", provider=self.name, model_name=model, cause=e
            ) from e
        except ValueError as e:
            raise ProviderError(
                f"Ollama returned an undecodable body: {e}", provider=self.name, model_name=model, cause=e
            ) from e

        if not isinstance(data, dict):
            raise ProviderError(
                f"Ollama returned a JSON {type(data).__name__}, expected an object",
                provider=self.name,
                model_name=model,
            )
        return data

    async def complete_json(self, system_prompt: str, prompt: str) -> Optional[str]:
        model = self.llm_settings.model_name
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "format": "json",
            "options": {"temperature": self.llm_settings.temperature},
            "stream": False,  # important
        }
        data = await asyncio.to_thread(self._post, "/api/chat", payload, self.llm_settings.timeout, model)
        message = data.get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise ProviderError(
                f"Ollama message content is a {type(content).__name__}, expected text",
                provider=self.name,
                model_name=model,
            )
        return content

    async def embed(self, text: str) -> List[float]:
        model = self.embedding_settings.model_name
        data = await asyncio.to_thread(
            self._post, "/api/embed", {"model": model, "input": text}, self.embedding_settings.timeout, model
        )
        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list) or not embeddings or not isinstance(embeddings[0], list):
            raise ProviderError("Ollama embedding response contained no vectors", provider=self.name, model_name=model)
        return list(embeddings[0])


def build_provider(settings: AISettings) -> LLMProvider:
    """Instantiate the configured provider"""
    llm = settings.llm_settings
    if llm.provider is ProviderType.OLLAMA:
        logger.info(f"Using Ollama provider at {llm.base_url} with model {llm.model_name}")
        return OllamaProvider(llm, settings.embedding_settings)
    logger.info(f"Using OpenAI provider with model {llm.model_name}")
    return OpenAIProvider(llm, settings.embedding_settings)
