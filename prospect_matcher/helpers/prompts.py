import json

from prospect_matcher.models.models import JobPosition, Prospect

NO_PROFILE_PLACEHOLDER = "No profile information available"

SYSTEM_PROMPT = """You are an expert recruitment specialist with deep experience in talent evaluation and job matching.
Your task is to analyze candidate profiles against job requirements and provide detailed, objective assessments.
Always be fair, unbiased, and thorough in your evaluation, and base every judgement on evidence from the profile."""

MATCHING_PROMPT = """Analyze the following candidate profile against the job position requirements and provide a detailed matching assessment.

**CANDIDATE PROFILE:**
{candidate_lines}

Profile Details:
{profile_text}
{structured_section}
---

**JOB POSITION:**
{position_lines}

Evaluation Criteria:
{evaluation_criteria}

Department: {department}
Work Mode: {work_mode}
Score Threshold: {score_threshold}

---

**INSTRUCTIONS:**
Perform a comprehensive semantic analysis comparing the candidate's background, skills, and experience against the job requirements. Consider:

1. **Technical Skills Match**: How well do the candidate's technical skills align with requirements?
2. **Experience Relevance**: Is the candidate's experience relevant to the role?
3. **Cultural & Soft Skills**: Does the candidate demonstrate qualities that fit the role?
4. **Growth Potential**: Can the candidate grow into areas where they may lack experience?
5. **Red Flags**: Are there any concerning gaps or misalignments?

Return your analysis as a JSON object with the following structure:
{{
  "match_score": <number between 0-100>,
  "strengths": [
    "List 3-5 key strengths where the candidate excels",
    "Be specific and reference actual qualifications"
  ],
  "gaps": [
    "List 2-4 areas where the candidate falls short",
    "Be constructive and specific"
  ],
  "recommendation": "A 1-2 sentence summary recommendation (Highly Recommended / Recommended / Consider / Not Recommended)",
  "detailed_analysis": "A comprehensive 2-3 paragraph analysis explaining the match score and key factors"
}}

**SCORING GUIDELINES:**
- 90-100: Exceptional fit - Exceeds most requirements
- 70-89: Strong fit - Meets most requirements with minor gaps
- 45-69: Moderate fit - Meets some requirements, notable gaps
- 25-44: Weak fit - Significant gaps in key areas
- 0-24: Poor fit - Does not meet fundamental requirements

Provide objective, evidence-based assessment. Focus on facts from the profile."""


def _candidate_lines(prospect: Prospect) -> str:
    lines = [f"Name: {prospect.name or 'Unknown'}"]
    if prospect.email:
        lines.append(f"Email: {prospect.email}")
    if prospect.phone:
        lines.append(f"Phone: {prospect.phone}")
    if prospect.linkedin_url:
        lines.append(f"LinkedIn: {prospect.linkedin_url}")
    return "\n".join(lines)


def _position_lines(position: JobPosition) -> str:
    lines = [
        f"Title: {position.name}",
        f"Description: {position.description}",
    ]
    if position.long_description:
        lines.append(f"\nDetailed Description:\n{position.long_description}")
    return "\n".join(lines)


def _structured_section(prospect: Prospect) -> str:
    if prospect.profile_json is None:
        return ""
    return f"\nStructured Data:\n{json.dumps(prospect.profile_json, indent=2, default=str)}\n"


def build_matching_prompt(prospect: Prospect, position: JobPosition) -> str:
    """Render the evaluation prompt for one (prospect, position) pair.

    Pure function of its inputs: identical records give byte-identical text.
    """
    threshold = position.llm_score_threshold
    return MATCHING_PROMPT.format(
        candidate_lines=_candidate_lines(prospect),
        profile_text=prospect.profile_text or NO_PROFILE_PLACEHOLDER,
        structured_section=_structured_section(prospect),
        position_lines=_position_lines(position),
        evaluation_criteria=position.evaluation_criteria,
        department=position.department or "Not specified",
        work_mode=position.work_mode or "Not specified",
        score_threshold="Not specified" if threshold is None else threshold,
    )
