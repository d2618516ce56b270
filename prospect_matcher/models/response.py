# models/response.py
from pydantic import BaseModel
from typing import List

from prospect_matcher.models.models import MatchResult, Prospect


class CreateProspectResponse(BaseModel):
    prospect: Prospect
    evaluations: List[MatchResult]


class MessageResponse(BaseModel):
    message: str
