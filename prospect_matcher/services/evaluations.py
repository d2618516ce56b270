"""
Evaluation persistence: one record per (prospect, position) pair
"""
import uuid
from datetime import datetime
from typing import List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from prospect_matcher.models.models import MatchResult, ProspectEvaluation
from prospect_matcher.services.db import evaluations_coll, strip_mongo_id
from prospect_matcher.utils.exceptions import DatabaseError, ExceptionContext
from prospect_matcher.utils.logging_config import get_logger

logger = get_logger(__name__)

COLLECTION = "prospect_evaluation"


class EvaluationGateway:
    """Create/read/update evaluation records and the upsert built on them"""

    @staticmethod
    async def find_existing(prospect_id: str, position_id: str) -> Optional[ProspectEvaluation]:
        with ExceptionContext("find_evaluation", logger, collection=COLLECTION, prospect_id=prospect_id, position_id=position_id):
            doc = await evaluations_coll.find_one({"prospect_id": prospect_id, "job_position_id": position_id})
            return ProspectEvaluation(**strip_mongo_id(doc)) if doc else None

    @staticmethod
    async def create(evaluation: ProspectEvaluation) -> ProspectEvaluation:
        now = datetime.utcnow()
        record = evaluation.copy(update={
            "id": evaluation.id or str(uuid.uuid4()),
            "created_at": evaluation.created_at or now,
            "updated_at": now,
        })
        try:
            await evaluations_coll.insert_one(record.dict())
        except DuplicateKeyError:
            raise
        except Exception as e:
            raise DatabaseError(
                f"Failed to create evaluation: {e}", operation="create_evaluation", collection=COLLECTION, cause=e
            ) from e
        logger.info(f"Created evaluation for prospect {record.prospect_id} / position {record.job_position_id}")
        return record

    @staticmethod
    async def update(prospect_id: str, position_id: str, llm_score: float, llm_evaluation: str) -> ProspectEvaluation:
        with ExceptionContext("update_evaluation", logger, collection=COLLECTION, prospect_id=prospect_id, position_id=position_id):
            doc = await evaluations_coll.find_one_and_update(
                {"prospect_id": prospect_id, "job_position_id": position_id},
                {"$set": {"llm_score": llm_score, "llm_evaluation": llm_evaluation, "updated_at": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise DatabaseError(
                f"No evaluation to update for prospect {prospect_id} / position {position_id}",
                operation="update_evaluation",
                collection=COLLECTION,
            )
        logger.info(f"Updated evaluation for prospect {prospect_id} / position {position_id}")
        return ProspectEvaluation(**strip_mongo_id(doc))

    @staticmethod
    async def upsert_result(result: MatchResult) -> ProspectEvaluation:
        """Persist a match result, updating the pair's record if one exists."""
        existing = await EvaluationGateway.find_existing(result.prospect_id, result.position_id)
        if existing:
            return await EvaluationGateway.update(
                result.prospect_id, result.position_id, result.match_score, result.detailed_analysis
            )
        try:
            return await EvaluationGateway.create(ProspectEvaluation(
                prospect_id=result.prospect_id,
                job_position_id=result.position_id,
                llm_score=result.match_score,
                llm_evaluation=result.detailed_analysis,
            ))
        except DuplicateKeyError:
            # created concurrently between the check and the insert
            logger.debug(f"Evaluation for {result.prospect_id}/{result.position_id} appeared concurrently, updating")
            return await EvaluationGateway.update(
                result.prospect_id, result.position_id, result.match_score, result.detailed_analysis
            )

    @staticmethod
    async def list_for_prospect(prospect_id: str) -> List[ProspectEvaluation]:
        with ExceptionContext("list_evaluations_for_prospect", logger, collection=COLLECTION, prospect_id=prospect_id):
            docs = await evaluations_coll.find({"prospect_id": prospect_id}).to_list(length=None)
            return [ProspectEvaluation(**strip_mongo_id(d)) for d in docs]

    @staticmethod
    async def list_for_position(position_id: str) -> List[ProspectEvaluation]:
        with ExceptionContext("list_evaluations_for_position", logger, collection=COLLECTION, position_id=position_id):
            docs = await evaluations_coll.find({"job_position_id": position_id}).to_list(length=None)
            return [ProspectEvaluation(**strip_mongo_id(d)) for d in docs]
