from enum import Enum
from pydantic import BaseModel, EmailStr, HttpUrl
from typing import Any, Dict, Optional

# -------- Matching --------
class MatchRequest(BaseModel):
    prospect_id: Optional[str] = None
    position_id: Optional[str] = None
    auto_save: bool = True
    # position-only batches: score only prospects without an evaluation yet
    skip_evaluated: bool = False

# -------- Prospects --------
class CreateProspectRequest(BaseModel):
    agent_id: str
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    linkedin_url: Optional[HttpUrl] = None
    profile_text: Optional[str] = None
    profile_json: Optional[Dict[str, Any]] = None

# -------- Search --------
class SearchType(str, Enum):
    """What a search query runs against"""
    PROSPECTS = "prospects"
    POSITIONS = "positions"

# -------- Deletion --------
class RecordType(str, Enum):
    PROSPECT = "prospect"
    POSITION = "position"
