"""Rule-based compatibility scoring between a candidate and catalog jobs.

Score range: 0.0-1.0 (clamped). Four weighted sub-scores when a profile
is known (seniority 25, location 20, skills 35, message 20); message
relevance alone otherwise. All comparisons run on accent-folded text, so
"tecnico" matches "Técnico".
"""

import logging
import math
import re

from src.catalog.loader import JobCatalog
from src.core.schemas import CandidateProfile, JobPosting, ScoredJob, SeniorityLevel, fold_text
from src.pipeline.heuristics import is_driver_candidate
from src.pipeline.vocabulary import (
    EXPERIENCE_LEVEL_TERMS,
    GENERIC_SUGGESTION_TERMS,
    KNOWN_LOCALITIES,
    MESSAGE_SYNONYMS,
    PROFESSION_ALTERNATIVES,
    RELATED_KEYWORDS,
    REMOTE_TERMS,
    SKILL_SYNONYMS,
)

logger = logging.getLogger(__name__)

SENIORITY_WEIGHT = 25.0
LOCATION_WEIGHT = 20.0
SKILLS_WEIGHT = 35.0
MESSAGE_WEIGHT = 20.0
TOTAL_WEIGHT = 100.0

MATCH_THRESHOLD = 0.3
MAX_MATCHES = 5
MAX_DRIVER_JOBS = 3
MAX_OTHER_JOBS_FOR_DRIVERS = 2
FALLBACK_JOB_COUNT = 3
SUGGESTION_SCORE = 0.4
MAX_SUGGESTIONS = 3

_YEARS_PATTERN = re.compile(r"(\d+)\s*anos?")


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def extract_seniority_level(experience: str) -> SeniorityLevel:
    """Infer the candidate's level from free text.

    Explicit level words win over years of experience. Defaults to MID.
    """
    text = fold_text(experience)
    for level, terms in EXPERIENCE_LEVEL_TERMS:
        if any(term in text for term in terms):
            return SeniorityLevel(level)

    match = _YEARS_PATTERN.search(text)
    if match:
        years = int(match.group(1))
        if years <= 1:
            return SeniorityLevel.JUNIOR
        if years <= 3:
            return SeniorityLevel.MID
        return SeniorityLevel.SENIOR

    return SeniorityLevel.MID


def match_seniority(experience: str, job_seniority: str | SeniorityLevel) -> float:
    """1.0 when the candidate is at the job's level or one above, 0.7 when close, else 0.3."""
    candidate_rank = extract_seniority_level(experience).rank
    job_rank = SeniorityLevel.parse(job_seniority).rank

    if job_rank <= candidate_rank <= job_rank + 1:
        return 1.0
    if job_rank - 1 <= candidate_rank <= job_rank + 2:
        return 0.7
    return 0.3


def match_location(candidate_location: str, job_location: str) -> float:
    candidate = fold_text(candidate_location)
    job = fold_text(job_location)

    if any(term in job for term in REMOTE_TERMS):
        return 1.0

    candidate_city = next((city for city in KNOWN_LOCALITIES if city in candidate), None)
    job_city = next((city for city in KNOWN_LOCALITIES if city in job), None)
    if candidate_city and job_city:
        # Same town, or a neighbouring one
        return 1.0 if candidate_city == job_city else 0.5

    return 0.6


def match_skills(skills: str, description: str) -> float:
    """Fraction of comma-separated skills found in the description.

    A skill counts when it appears verbatim, when one of its synonym
    categories has a term in the description, or when a related keyword
    does. Returns 0.5 when there are no usable skills.
    """
    tokens = [s.strip() for s in fold_text(skills).split(",") if s.strip()]
    if not tokens:
        return 0.5

    desc = fold_text(description)
    matched = sum(1 for skill in tokens if _skill_in_description(skill, desc))
    return matched / len(tokens)


def _skill_in_description(skill: str, desc: str) -> bool:
    if skill in desc:
        return True

    for category, synonyms in SKILL_SYNONYMS.items():
        if category in skill or any(syn in skill for syn in synonyms):
            if any(syn in desc for syn in synonyms):
                return True

    return any(keyword in desc for keyword in RELATED_KEYWORDS.get(skill, ()))


def analyze_message_relevance(message: str, job: JobPosting) -> float:
    """How strongly a free-text message points at this job, 0.0-1.0."""
    text = fold_text(message)
    if not text:
        return 0.0

    title = fold_text(job.title)
    desc = fold_text(job.description)
    relevance = 0.0

    title_words = [word for word in title.split() if len(word) >= 3][:2]
    if any(word in text for word in title_words):
        relevance += 0.4

    for category, terms in MESSAGE_SYNONYMS.items():
        if category in title or category in desc:
            if any(term in text for term in terms):
                relevance += 0.5

    keywords = [word for word in desc.split() if len(word) > 3]
    message_words = text.split()
    common = [
        keyword
        for keyword in keywords
        if any(word in keyword or keyword in word for word in message_words)
    ]
    relevance += (len(common) / max(len(keywords), 1)) * 0.3

    return min(relevance, 1.0)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_job(job: JobPosting, profile: CandidateProfile | None, message: str = "") -> float:
    """Weighted compatibility between a candidate and a job, clamped to 0.0-1.0.

    A sub-score contributes only when both of its inputs are present.
    """
    score = 0.0

    if profile is None or profile.is_empty():
        if message:
            score += analyze_message_relevance(message, job) * TOTAL_WEIGHT
    else:
        if profile.experience and job.seniority:
            score += match_seniority(profile.experience, job.seniority) * SENIORITY_WEIGHT
        if profile.location and job.location:
            score += match_location(profile.location, job.location) * LOCATION_WEIGHT
        if profile.skills and job.description:
            score += match_skills(profile.skills, job.description) * SKILLS_WEIGHT
        if message:
            score += analyze_message_relevance(message, job) * MESSAGE_WEIGHT

    if math.isnan(score):
        score = 0.0

    return max(0.0, min(1.0, score / TOTAL_WEIGHT))


def is_driver_job(job: JobPosting) -> bool:
    title = fold_text(job.title)
    desc = fold_text(job.description)
    return "motorista" in title or "motorista" in desc or "cnh" in desc


def find_matching_jobs(
    catalog: JobCatalog,
    profile: CandidateProfile | None,
    message: str = "",
) -> list[ScoredJob]:
    """Pick the jobs to show a candidate.

    Returns:
        The first catalog jobs unscored when the profile is empty; driver
        jobs first for driver candidates; otherwise the best matches above
        the threshold, falling back to alternative suggestions.
    """
    if profile is None or profile.is_empty():
        return [ScoredJob(job=job) for job in catalog.first(FALLBACK_JOB_COUNT)]

    scored = [ScoredJob(job=job, score=score_job(job, profile, message)) for job in catalog]

    if is_driver_candidate(profile, message):
        driver_jobs = [s for s in scored if is_driver_job(s.job)]
        other_jobs = [s for s in scored if not is_driver_job(s.job)]
        driver_jobs.sort(key=_score_key, reverse=True)
        other_jobs = sorted(
            (s for s in other_jobs if _score_key(s) > MATCH_THRESHOLD),
            key=_score_key,
            reverse=True,
        )
        results = driver_jobs[:MAX_DRIVER_JOBS] + other_jobs[:MAX_OTHER_JOBS_FOR_DRIVERS]
        logger.info(
            "Driver candidate: %s",
            ", ".join(f"{s.job.title} ({_score_key(s):.0%})" for s in results),
        )
        return results

    matches = sorted(
        (s for s in scored if _score_key(s) > MATCH_THRESHOLD),
        key=_score_key,
        reverse=True,
    )[:MAX_MATCHES]

    if not matches:
        return suggest_alternative_jobs(catalog, profile, message)

    logger.info(
        "Matched %d jobs: %s",
        len(matches),
        ", ".join(f"{s.job.title} ({_score_key(s):.0%})" for s in matches),
    )
    return matches


def suggest_alternative_jobs(
    catalog: JobCatalog,
    profile: CandidateProfile | None,
    message: str = "",
) -> list[ScoredJob]:
    """Related or entry-level jobs offered when nothing matched."""
    profile = profile or CandidateProfile()
    haystacks = (
        fold_text(message),
        fold_text(profile.skills or ""),
        fold_text(profile.current_position or ""),
        fold_text(profile.experience or ""),
    )

    suggested: list[JobPosting] = []
    for profession, titles in PROFESSION_ALTERNATIVES.items():
        if any(profession in text for text in haystacks):
            suggested = [job for job in catalog if job.title in titles]
            break

    if not suggested:
        suggested = [
            job
            for job in catalog
            if any(term in fold_text(job.title) for term in GENERIC_SUGGESTION_TERMS)
        ]

    logger.info("No strong matches; suggesting %s", [job.title for job in suggested[:MAX_SUGGESTIONS]])
    return [
        ScoredJob(job=job, score=SUGGESTION_SCORE, is_suggestion=True)
        for job in suggested[:MAX_SUGGESTIONS]
    ]


def _score_key(scored: ScoredJob) -> float:
    return scored.score or 0.0
