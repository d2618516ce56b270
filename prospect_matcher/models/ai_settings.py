"""
AI Settings Models for Provider and Matching Configuration
"""
import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class ProviderType(str, Enum):
    """Available LLM providers"""
    OPENAI = "openai"
    OLLAMA = "ollama"


class LLMSettings(BaseModel):
    """LLM Configuration Settings"""
    provider: ProviderType = Field(default=ProviderType.OPENAI, description="Which provider serves completions")
    model_name: str = Field(default="gpt-4-turbo-preview", description="Chat completion model name")
    api_key: Optional[str] = Field(default=None, description="Provider API key")
    base_url: Optional[str] = Field(default=None, description="Override for the provider base URL")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0, description="Generation temperature")
    timeout: float = Field(default=60.0, gt=0, le=600, description="Request timeout in seconds")


class EmbeddingSettings(BaseModel):
    """Embedding Model Configuration"""
    model_name: str = Field(default="text-embedding-3-small", description="Embedding model name")
    timeout: float = Field(default=30.0, gt=0, le=600, description="Request timeout in seconds")


class ProcessingSettings(BaseModel):
    """Batch Processing Configuration"""
    max_concurrent: int = Field(default=1, ge=1, le=20, description="Maximum concurrent provider requests per batch")


class AISettings(BaseModel):
    """Complete matcher configuration"""
    llm_settings: LLMSettings = Field(default_factory=LLMSettings)
    embedding_settings: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    processing_settings: ProcessingSettings = Field(default_factory=ProcessingSettings)


def load_settings() -> AISettings:
    """Build settings from environment variables (and .env)"""
    provider = ProviderType(os.getenv("LLM_PROVIDER", ProviderType.OPENAI.value).lower())

    if provider is ProviderType.OLLAMA:
        default_model = "llama3.1:8b"
        default_embed = "nomic-embed-text"
        base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    else:
        default_model = "gpt-4-turbo-preview"
        default_embed = "text-embedding-3-small"
        base_url = os.getenv("OPENAI_BASE_URL") or None

    return AISettings(
        llm_settings=LLMSettings(
            provider=provider,
            model_name=os.getenv("LLM_MODEL", default_model),
            api_key=os.getenv("OPENAI_API_KEY") or None,
            base_url=base_url,
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.3")),
            timeout=float(os.getenv("LLM_TIMEOUT", "60")),
        ),
        embedding_settings=EmbeddingSettings(
            model_name=os.getenv("EMBED_MODEL", default_embed),
            timeout=float(os.getenv("EMBED_TIMEOUT", "30")),
        ),
        processing_settings=ProcessingSettings(
            max_concurrent=int(os.getenv("MATCH_MAX_CONCURRENT", "1")),
        ),
    )
