from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import datetime

# -------- Prospects --------
class Prospect(BaseModel):
    id: str
    agent_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    profile_text: Optional[str] = None
    profile_json: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Job Positions --------
class JobPosition(BaseModel):
    id: str
    name: str
    description: str = ""
    long_description: Optional[str] = None
    evaluation_criteria: str = ""
    # 0-1 or 0-100 depending on who wrote it; only the caller compares against it
    llm_score_threshold: Optional[float] = None
    department: Optional[str] = None
    work_mode: Optional[str] = None
    is_open: bool = True
    active: bool = True
    open_positions: Optional[int] = None
    positions_hired: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Matching --------
class RawMatchResponse(BaseModel):
    """Provider JSON as decoded, before any defaulting or clamping."""
    model_config = ConfigDict(extra="ignore")

    match_score: Any = None
    strengths: Any = None
    gaps: Any = None
    recommendation: Any = None
    detailed_analysis: Any = None

class MatchResult(BaseModel):
    prospect_id: str
    position_id: str
    match_score: float = Field(ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    recommendation: str = ""
    detailed_analysis: str = ""

# -------- Evaluations --------
class ProspectEvaluation(BaseModel):
    id: Optional[str] = None
    prospect_id: str
    job_position_id: str
    llm_score: Optional[float] = None
    llm_evaluation: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
