"""
Record store access for prospects and job positions
"""
import re
import uuid
from datetime import datetime
from typing import List, Optional

from pymongo import DESCENDING

from prospect_matcher.models.models import JobPosition, Prospect
from prospect_matcher.models.schemas import CreateProspectRequest
from prospect_matcher.services.db import evaluations_coll, positions_coll, prospects_coll, strip_mongo_id
from prospect_matcher.utils.exceptions import ExceptionContext
from prospect_matcher.utils.logging_config import get_logger

logger = get_logger(__name__)


def _ilike(query: str, fields: List[str]) -> dict:
    pattern = {"$regex": re.escape(query), "$options": "i"}
    return {"$or": [{field: pattern} for field in fields]}


class RecordStore:
    """Typed reads and writes over the prospect and job_position collections"""

    @staticmethod
    async def get_prospects() -> List[Prospect]:
        with ExceptionContext("get_prospects", logger, collection="prospect"):
            docs = await prospects_coll.find({}).sort("created_at", DESCENDING).to_list(length=None)
            return [Prospect(**strip_mongo_id(d)) for d in docs]

    @staticmethod
    async def get_prospect_by_id(prospect_id: str) -> Optional[Prospect]:
        with ExceptionContext("get_prospect_by_id", logger, collection="prospect", prospect_id=prospect_id):
            doc = await prospects_coll.find_one({"id": prospect_id})
            return Prospect(**strip_mongo_id(doc)) if doc else None

    @staticmethod
    async def create_prospect(data: CreateProspectRequest) -> Prospect:
        prospect = Prospect(
            id=str(uuid.uuid4()),
            agent_id=data.agent_id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            linkedin_url=str(data.linkedin_url) if data.linkedin_url else None,
            profile_text=data.profile_text,
            profile_json=data.profile_json,
            created_at=datetime.utcnow(),
        )
        with ExceptionContext("create_prospect", logger, collection="prospect"):
            await prospects_coll.insert_one(prospect.dict())
        logger.info(f"Created prospect {prospect.id}")
        return prospect

    @staticmethod
    async def delete_prospect(prospect_id: str) -> bool:
        with ExceptionContext("delete_prospect", logger, collection="prospect", prospect_id=prospect_id):
            result = await prospects_coll.delete_one({"id": prospect_id})
            return result.deleted_count > 0

    @staticmethod
    async def get_open_positions() -> List[JobPosition]:
        with ExceptionContext("get_open_positions", logger, collection="job_position"):
            cursor = positions_coll.find({"is_open": True, "active": True}).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
            return [JobPosition(**strip_mongo_id(d)) for d in docs]

    @staticmethod
    async def get_position_by_id(position_id: str) -> Optional[JobPosition]:
        with ExceptionContext("get_position_by_id", logger, collection="job_position", position_id=position_id):
            doc = await positions_coll.find_one({"id": position_id})
            return JobPosition(**strip_mongo_id(doc)) if doc else None

    @staticmethod
    async def delete_position(position_id: str) -> bool:
        with ExceptionContext("delete_position", logger, collection="job_position", position_id=position_id):
            result = await positions_coll.delete_one({"id": position_id})
            return result.deleted_count > 0

    @staticmethod
    async def search_prospects(query: str) -> List[Prospect]:
        with ExceptionContext("search_prospects", logger, collection="prospect"):
            cursor = prospects_coll.find(_ilike(query, ["name", "email", "profile_text"])).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
            return [Prospect(**strip_mongo_id(d)) for d in docs]

    @staticmethod
    async def search_positions(query: str) -> List[JobPosition]:
        with ExceptionContext("search_positions", logger, collection="job_position"):
            cursor = positions_coll.find(
                _ilike(query, ["name", "description", "evaluation_criteria"])
            ).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
            return [JobPosition(**strip_mongo_id(d)) for d in docs]

    @staticmethod
    async def get_prospects_without_evaluation(position_id: str) -> List[Prospect]:
        """Prospects that have no evaluation record for this position yet"""
        with ExceptionContext("get_prospects_without_evaluation", logger, collection="prospect_evaluation"):
            evaluated = await evaluations_coll.distinct("prospect_id", {"job_position_id": position_id})
        evaluated_ids = set(evaluated)
        prospects = await RecordStore.get_prospects()
        return [p for p in prospects if p.id not in evaluated_ids]
