from __future__ import annotations

import json
from typing import Any

RESUME_PARSE_SYSTEM = (
    "You extract structured data from resume text. "
    "Return only a JSON object. Use null for missing scalar values and empty lists for missing lists. "
    "Never invent employers, dates or credentials that are not in the text."
)

RESUME_SCHEMA_HINT = {
    "full_name": "string or null",
    "email": "string or null",
    "phone": "string or null",
    "location": "string or null",
    "summary": "string or null",
    "experience": [
        {
            "company": "string",
            "title": "string",
            "location": "string or null",
            "start_date": "YYYY-MM or YYYY",
            "end_date": "YYYY-MM or YYYY, null if current",
            "current": "boolean",
            "description": "string or null",
            "highlights": ["string"],
        }
    ],
    "education": [
        {
            "institution": "string",
            "degree": "string or null",
            "field": "string or null",
            "start_date": "YYYY",
            "end_date": "YYYY",
            "gpa": "string or null",
            "highlights": ["string"],
        }
    ],
    "skills": [{"name": "string", "category": "string, e.g. programming, tools, soft skills"}],
    "certifications": [{"name": "string", "issuer": "string or null", "date": "string or null"}],
}

ANALYSIS_SYSTEM = (
    "You are a career intelligence analyst. Assess the candidate the way an employer's talent "
    "intelligence platform would, using the resume, the web presence evidence and labor market data. "
    "Return only a JSON object."
)

ANALYSIS_SCHEMA_HINT = {
    "skills": {
        "stated": [{"name": "string", "level": "beginner|intermediate|advanced|expert", "category": "string"}],
        "inferred": [{"name": "string", "level": "string", "category": "string", "inference_reason": "string"}],
        "gaps": [{"skill": "string", "importance": "low|medium|high", "reason": "string"}],
        "strengths": ["string"],
    },
    "career": {
        "trajectory": "string",
        "progression": "linear|pivoting|accelerating|stagnating",
        "years_of_experience": "number",
        "industry_focus": ["string"],
        "potential_paths": [
            {
                "current_role": "string",
                "next_roles": [{"title": "string", "probability": "0.0-1.0", "required_skills": ["string"]}],
            }
        ],
    },
    "market_position": {
        "overall_score": "0-100",
        "skills_in_demand": ["string"],
        "skills_to_acquire": ["string"],
        "salary_range": {"min": "number", "max": "number", "median": "number"},
        "competitiveness": "low|medium|high",
    },
    "web_presence": {
        "platforms": [{"platform": "string", "url": "string", "assessment": "positive|neutral|negative|missing"}],
        "consistency": "0-100",
        "issues": ["string"],
    },
    "recommendations": [
        {
            "priority": "high|medium|low",
            "category": "skills|experience|education|online-presence|networking",
            "title": "string",
            "description": "string",
            "action_items": ["string"],
        }
    ],
    "concerns": [
        {"severity": "low|medium|high", "area": "string", "description": "string", "mitigation": "string"}
    ],
}


def build_resume_parse_prompt(raw_text: str) -> str:
    return (
        "Parse this resume into JSON with this structure:\n"
        f"{json.dumps(RESUME_SCHEMA_HINT, indent=2)}\n\n"
        f"RESUME TEXT:\n{raw_text}"
    )


def build_analysis_prompt(
    *,
    resume: dict[str, Any],
    web_presence: list[dict[str, Any]],
    linkedin_profile: dict[str, Any] | None,
    skill_demands: list[dict[str, Any]],
    deep_search_summary: str,
) -> str:
    sections = [
        "## Resume Data",
        json.dumps(resume, indent=2),
        "## Web Presence Found",
        json.dumps(web_presence, indent=2),
        "## LinkedIn Profile",
        json.dumps(linkedin_profile, indent=2) if linkedin_profile else "Not found",
        "## Labor Market Skill Demand",
        json.dumps(skill_demands, indent=2),
        deep_search_summary or "No deep search performed.",
        "",
        "Weigh the web evidence: news, publications, talks, patents and awards support claims of "
        "expertise; a claimed thought leader with minimal visibility is a concern.",
        "Respond with JSON in this structure:",
        json.dumps(ANALYSIS_SCHEMA_HINT, indent=2),
    ]
    return "\n\n".join(sections)


SALARY_PERCENTILE_SYSTEM = (
    "You are a compensation analyst. Estimate where a candidate falls within the market salary band "
    "for their role. Return only a JSON object."
)

SALARY_PERCENTILE_SCHEMA_HINT = {
    "low": "integer 0-100, lower bound of the candidate's percentile",
    "high": "integer 0-100, upper bound of the candidate's percentile",
    "rationale": "one or two sentences",
}


def build_salary_percentile_prompt(
    *,
    title: str,
    location: str,
    years_experience: float,
    skills: list[str],
    recent_titles: list[str],
    salary_band: dict[str, Any],
) -> str:
    sections = [
        f"Role: {title}",
        f"Location: {location}",
        f"Years of experience: {years_experience:g}",
        f"Skills: {', '.join(skills) if skills else 'not provided'}",
        f"Recent titles: {', '.join(recent_titles) if recent_titles else 'not provided'}",
        "## Market Salary Band",
        json.dumps(salary_band, indent=2),
        "A narrow range (10-20 points) is expected. Senior titles and in-demand skills move the "
        "candidate up; limited experience moves them down.",
        "Respond with JSON in this structure:",
        json.dumps(SALARY_PERCENTILE_SCHEMA_HINT, indent=2),
    ]
    return "\n\n".join(sections)


COMPATIBILITY_SYSTEM = (
    "You are a career advisor comparing one candidate against one job posting. "
    "Be specific and ground every strength and gap in the posting or the candidate analysis. "
    "Return only a JSON object."
)

COMPATIBILITY_SCHEMA_HINT = {
    "score": "integer 0-100, overall fit",
    "breakdown": {"skills": "0-100", "experience": "0-100", "industry": "0-100"},
    "strengths": ["2-4 strings"],
    "gaps": ["2-4 strings"],
    "salary_leverage": {"target_low": "number", "target_high": "number", "rationale": "string"},
    "recommendation": "one short paragraph",
}


def build_compatibility_prompt(
    *,
    job: dict[str, Any],
    profile_analysis: dict[str, Any],
    market_value: dict[str, Any] | None,
) -> str:
    sections = [
        "## Job Posting",
        json.dumps(job, indent=2),
        "## Candidate Analysis",
        json.dumps(profile_analysis, indent=2),
        "## Candidate Market Value",
        json.dumps(market_value, indent=2) if market_value else "Not available",
        "Base salary_leverage on the posting's advertised range when present, otherwise on the market value.",
        "Respond with JSON in this structure:",
        json.dumps(COMPATIBILITY_SCHEMA_HINT, indent=2),
    ]
    return "\n\n".join(sections)
