import asyncio
from typing import List, Optional, Sequence, Tuple

from prospect_matcher.helpers.parsing import to_match_result
from prospect_matcher.helpers.prompts import build_matching_prompt
from prospect_matcher.models.models import JobPosition, MatchResult, Prospect
from prospect_matcher.services.evaluator import LLMEvaluationClient
from prospect_matcher.services.llm import LLMProvider
from prospect_matcher.utils.exceptions import MatchingError
from prospect_matcher.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)


def rank_by_score(results: List[MatchResult]) -> List[MatchResult]:
    # sorted() is stable with reverse=True, so ties keep input order
    return sorted(results, key=lambda r: r.match_score, reverse=True)


class Matcher:
    """Scores prospects against job positions through an injected LLM provider"""

    def __init__(self, provider: LLMProvider, max_concurrent: int = 1):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.provider = provider
        self.client = LLMEvaluationClient(provider)
        self.max_concurrent = max_concurrent

    async def match(self, prospect: Prospect, position: JobPosition) -> MatchResult:
        """Score one pair with exactly one provider call."""
        prompt = build_matching_prompt(prospect, position)
        try:
            raw = await self.client.evaluate(prompt)
        except MatchingError as e:
            logger.error(
                f"Failed to match prospect {prospect.id} to position {position.id}: {e.message}",
                extra={"prospect_id": prospect.id, "position_id": position.id, "error_code": e.error_code}
            )
            raise

        result = to_match_result(raw, prospect.id, position.id)
        logger.info(f"Matched prospect {prospect.id} to position {position.id}: score={result.match_score:.1f}")
        return result

    async def _match_or_none(self, prospect: Prospect, position: JobPosition) -> Optional[MatchResult]:
        try:
            return await self.match(prospect, position)
        except Exception as e:
            # one bad pair never aborts the batch
            if not isinstance(e, MatchingError):
                logger.error(
                    f"Unexpected error matching prospect {prospect.id} to position {position.id}: {e}",
                    exc_info=True
                )
            return None

    async def _run_batch(self, pairs: Sequence[Tuple[Prospect, JobPosition]]) -> List[MatchResult]:
        if self.max_concurrent == 1:
            outcomes = []
            for prospect, position in pairs:
                outcomes.append(await self._match_or_none(prospect, position))
        else:
            semaphore = asyncio.Semaphore(self.max_concurrent)

            async def bounded(prospect, position):
                async with semaphore:
                    return await self._match_or_none(prospect, position)

            outcomes = await asyncio.gather(*(bounded(p, q) for p, q in pairs))

        results = [r for r in outcomes if r is not None]
        failed = len(pairs) - len(results)
        if failed:
            logger.warning(f"Batch finished with {len(results)} succeeded, {failed} failed")
        else:
            logger.info(f"Batch finished with {len(results)} succeeded")
        return results

    async def batch_match_prospect(self, prospect: Prospect, positions: List[JobPosition]) -> List[MatchResult]:
        """Score one prospect against many positions, keeping position order."""
        with PerformanceMonitor(
            "batch_match_prospect", logger, threshold_ms=60000, prospect_id=prospect.id, batch_size=len(positions)
        ):
            return await self._run_batch([(prospect, position) for position in positions])

    async def batch_match_position(self, prospects: List[Prospect], position: JobPosition) -> List[MatchResult]:
        """Score many prospects against one position, best score first."""
        with PerformanceMonitor(
            "batch_match_position", logger, threshold_ms=60000, position_id=position.id, batch_size=len(prospects)
        ):
            results = await self._run_batch([(prospect, position) for prospect in prospects])
        return rank_by_score(results)
