from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Request

from prospect_matcher.models.models import JobPosition, MatchResult, Prospect, ProspectEvaluation
from prospect_matcher.models.response import CreateProspectResponse, MessageResponse
from prospect_matcher.models.schemas import CreateProspectRequest, MatchRequest, RecordType, SearchType
from prospect_matcher.routers.dependencies import get_matcher
from prospect_matcher.services.evaluations import EvaluationGateway
from prospect_matcher.services.matching import Matcher
from prospect_matcher.services.records import RecordStore
from prospect_matcher.services.search import semantic_search
from prospect_matcher.utils.exceptions import NotFoundError, ValidationError
from prospect_matcher.utils.logging_config import PerformanceMonitor, get_logger

router = APIRouter(prefix="/agents/prospect-matcher", tags=["prospect-matcher"])
logger = get_logger(__name__)


async def _require_prospect(prospect_id: str) -> Prospect:
    prospect = await RecordStore.get_prospect_by_id(prospect_id)
    if not prospect:
        raise NotFoundError("Prospect not found", resource="prospect", resource_id=prospect_id)
    return prospect


async def _require_position(position_id: str) -> JobPosition:
    position = await RecordStore.get_position_by_id(position_id)
    if not position:
        raise NotFoundError("Job position not found", resource="job_position", resource_id=position_id)
    return position


async def _persist(results: List[MatchResult]) -> None:
    for result in results:
        await EvaluationGateway.upsert_result(result)
    logger.info(f"Persisted {len(results)} evaluations")


@router.post("/match", response_model=Union[MatchResult, List[MatchResult]])
async def match(body: MatchRequest, request: Request, matcher: Matcher = Depends(get_matcher)):
    """Score a pair, a prospect against open positions, or a position against prospects"""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        f"Match requested: prospect={body.prospect_id} position={body.position_id} auto_save={body.auto_save}",
        extra={"request_id": request_id}
    )

    if body.prospect_id and body.position_id:
        prospect = await _require_prospect(body.prospect_id)
        position = await _require_position(body.position_id)
        result = await matcher.match(prospect, position)
        if body.auto_save:
            await _persist([result])
        return result

    if body.prospect_id:
        prospect = await _require_prospect(body.prospect_id)
        positions = await RecordStore.get_open_positions()
        results = await matcher.batch_match_prospect(prospect, positions)
    elif body.position_id:
        position = await _require_position(body.position_id)
        if body.skip_evaluated:
            prospects = await RecordStore.get_prospects_without_evaluation(position.id)
        else:
            prospects = await RecordStore.get_prospects()
        results = await matcher.batch_match_position(prospects, position)
    else:
        raise ValidationError("Must provide either prospect_id, position_id, or both")

    if body.auto_save:
        await _persist(results)
    return results


@router.post("/create", status_code=201, response_model=Union[CreateProspectResponse, Prospect])
async def create_prospect(
    body: CreateProspectRequest,
    auto_match: bool = Query(False, description="Match the new prospect against open positions"),
    matcher: Matcher = Depends(get_matcher),
):
    """Create a prospect, optionally scoring it against all open positions"""
    prospect = await RecordStore.create_prospect(body)

    if not auto_match:
        return prospect

    positions = await RecordStore.get_open_positions()
    results = await matcher.batch_match_prospect(prospect, positions)
    await _persist(results)
    return CreateProspectResponse(prospect=prospect, evaluations=results)


@router.delete("/delete", response_model=MessageResponse)
async def delete_record(
    type: RecordType = Query(..., description="prospect or position"),
    id: str = Query(..., min_length=1),
):
    if type is RecordType.PROSPECT:
        await RecordStore.delete_prospect(id)
        return MessageResponse(message="Prospect deleted successfully")
    await RecordStore.delete_position(id)
    return MessageResponse(message="Job position deleted successfully")


@router.get("/search", response_model=None)
async def search(
    query: str = Query(..., min_length=1),
    type: SearchType = Query(...),
    limit: int = Query(10, ge=1, le=100),
    matcher: Matcher = Depends(get_matcher),
):
    """Text search across prospects or positions"""
    with PerformanceMonitor(f"search[{type.value}]", logger):
        if type is SearchType.PROSPECTS:
            results = await RecordStore.search_prospects(query)
            if len(results) > limit:
                return await semantic_search(query, results, limit, matcher.provider)
            return results[:limit]

        results = await RecordStore.search_positions(query)
        return results[:limit]


@router.get("/prospects", response_model=List[Prospect])
async def list_prospects():
    return await RecordStore.get_prospects()


@router.get("/positions", response_model=List[JobPosition])
async def list_positions():
    """Open and active positions, newest first"""
    return await RecordStore.get_open_positions()


@router.get("/evaluations", response_model=List[ProspectEvaluation])
async def list_evaluations(prospect_id: Optional[str] = None, position_id: Optional[str] = None):
    if prospect_id:
        return await EvaluationGateway.list_for_prospect(prospect_id)
    if position_id:
        return await EvaluationGateway.list_for_position(position_id)
    raise ValidationError("Must provide either prospect_id or position_id")
