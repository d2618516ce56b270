from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from prospect_matcher.models.models import Prospect
from prospect_matcher.services.llm import LLMProvider
from prospect_matcher.utils.exceptions import MatcherBaseException
from prospect_matcher.utils.logging_config import get_logger

logger = get_logger(__name__)

# (query_vector, filtered_candidates) -> reordered candidates
Ranker = Callable[[List[float], List[Prospect]], List[Prospect]]


def search_text(prospect: Prospect) -> str:
    return f"{prospect.name or ''} {prospect.email or ''} {prospect.profile_text or ''}".lower()


def text_search(query: str, candidates: Sequence[Prospect], limit: int) -> List[Prospect]:
    """Case-insensitive substring filter over name, email and profile text."""
    needle = query.lower()
    return [c for c in candidates if needle in search_text(c)][:max(0, limit)]


async def semantic_search(
    query: str,
    candidates: Sequence[Prospect],
    limit: int,
    provider: LLMProvider,
    ranker: Optional[Ranker] = None,
) -> List[Prospect]:
    """Search candidates for query.

    The query embedding is requested but only a supplied ranker uses it;
    without one, and whenever the embedding call fails, this is text_search.
    """
    try:
        query_vector = await provider.embed(query)
    except MatcherBaseException as e:
        logger.warning(f"Embedding unavailable, falling back to text search: {e.message}")
        return text_search(query, candidates, limit)
    except Exception as e:
        # any embedding failure falls back, not only the mapped ones
        logger.error(f"Unexpected embedding failure, falling back to text search: {e}", exc_info=True)
        return text_search(query, candidates, limit)

    if ranker is None:
        return text_search(query, candidates, limit)

    filtered = text_search(query, candidates, len(candidates))
    return ranker(query_vector, filtered)[:max(0, limit)]


def cosine_similarity(a, b) -> float:
    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)
    num = float(np.dot(va, vb))
    den = float(np.linalg.norm(va) * np.linalg.norm(vb)) or 1e-8
    return num / den


def make_vector_ranker(candidate_vectors: Dict[str, List[float]]) -> Ranker:
    """Build a ranker ordering candidates by cosine similarity to the query.

    Candidates without a stored vector sort last, in their original order.
    Not wired into the service; callers opt in by passing it to semantic_search.
    """
    def rank(query_vector: List[float], candidates: List[Prospect]) -> List[Prospect]:
        scored = [
            cosine_similarity(query_vector, candidate_vectors[c.id]) if c.id in candidate_vectors else float("-inf")
            for c in candidates
        ]
        order = sorted(range(len(candidates)), key=lambda i: scored[i], reverse=True)
        return [candidates[i] for i in order]

    return rank
