from prospect_matcher.helpers.parsing import decode_match_response
from prospect_matcher.helpers.prompts import SYSTEM_PROMPT
from prospect_matcher.models.models import RawMatchResponse
from prospect_matcher.services.llm import LLMProvider
from prospect_matcher.utils.logging_config import get_logger

logger = get_logger(__name__)


class LLMEvaluationClient:
    """Sends a rendered matching prompt to the provider and decodes the reply"""

    def __init__(self, provider: LLMProvider, system_prompt: str = SYSTEM_PROMPT):
        self.provider = provider
        self.system_prompt = system_prompt

    async def evaluate(self, prompt: str) -> RawMatchResponse:
        """One remote call; never retried.

        Raises ProviderError, EmptyResponseError or MalformedResponseError.
        """
        content = await self.provider.complete_json(self.system_prompt, prompt)
        logger.debug(f"Provider {self.provider.name} returned {len(content or '')} chars")
        return decode_match_response(content)
