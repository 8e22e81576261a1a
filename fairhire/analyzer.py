"""Rule-based resume to job description matching and JD text analysis."""

import logging
import re
from collections import Counter
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple, Union

import spacy
from spacy.matcher import PhraseMatcher

from .models import (
    ExperienceMatch,
    ExperienceRange,
    JDDescriptionAlignment,
    JDFeatures,
    JDMatchResult,
    JobDescription,
    ParsedResume,
)
from .numeric import round_half_up, round_to_int
from .skills import DOMAIN_KEYWORDS, JUNIOR_HINTS, MASTER_SKILL_LIST, SENIOR_HINTS

logger = logging.getLogger(__name__)

# --- Constants & Regex helpers -------------------------------------------------

YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
YEARS_PHRASE_RE = re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)", re.IGNORECASE)
PRESENT_RE = re.compile(r"\b(?:present|current|now|today)\b", re.IGNORECASE)

SKILL_WEIGHT_POINTS = 60
NEUTRAL_SKILL_POINTS = 50
EXPERIENCE_POINTS = {
    ExperienceMatch.BELOW: 15,
    ExperienceMatch.MEETS: 25,
    ExperienceMatch.EXCEEDS: 30,
}

TEXT_FACTOR_MIN = 0.9
TEXT_FACTOR_SPAN = 0.25
TITLE_WORD_WEIGHT = 0.25
MAX_JD_KEYWORDS = 15
MAX_MISSING_AREAS = 5

DOMAIN_STOPWORDS = {
    "ability",
    "experience",
    "including",
    "responsible",
    "responsibilities",
    "requirements",
    "candidate",
    "candidates",
    "role",
    "team",
    "teams",
    "work",
    "working",
    "strong",
    "skills",
    "skill",
    "years",
    "looking",
    "join",
}


# --- spaCy helpers --------------------------------------------------------------

@lru_cache(maxsize=1)
def _load_spacy_model():
    """Lazy-load a blank English pipeline once per process."""
    return spacy.blank("en")


@lru_cache(maxsize=1)
def _ensure_skill_matcher() -> Tuple[object, PhraseMatcher, Dict[str, str]]:
    nlp = _load_spacy_model()
    matcher = PhraseMatcher(nlp.vocab, attr="LOWER")
    alias_map: Dict[str, str] = {}
    for official_name, aliases in MASTER_SKILL_LIST.items():
        patterns = [nlp.make_doc(alias) for alias in aliases]
        if patterns:
            matcher.add(official_name, patterns)
        for alias in aliases:
            alias_map[alias.lower()] = official_name
    return nlp, matcher, alias_map


def _match_skill_mentions(text: str) -> List[str]:
    """Official skill names mentioned in ``text``, in order of first mention."""
    if not text:
        return []
    nlp, matcher, alias_map = _ensure_skill_matcher()
    doc = nlp(text)
    found: List[str] = []
    for match_id, start, end in sorted(matcher(doc), key=lambda item: (item[1], item[2])):
        span = doc[start:end]
        official_name = alias_map.get(span.text.lower(), nlp.vocab.strings[match_id])
        if official_name not in found:
            found.append(official_name)
    return found


# --- JD description analysis ----------------------------------------------------

def extract_jd_features(description: str, required_skills: Sequence[str] = ()) -> JDFeatures:
    """Derive skills, domain, complexity and keywords from a JD's free text."""
    features = JDFeatures()
    if not description or not description.strip():
        return features

    lowered = description.lower()
    detected: List[str] = [skill for skill in required_skills if skill.lower() in lowered]
    seen = {skill.lower() for skill in detected}
    for skill in _match_skill_mentions(description):
        if skill.lower() not in seen:
            seen.add(skill.lower())
            detected.append(skill)
    features.detected_skills = detected

    doc = _load_spacy_model()(description)
    token_counts: Counter = Counter()
    keyword_counts: Counter = Counter()
    for token in doc:
        if not token.is_alpha:
            continue
        lemma = token.lower_
        token_counts[lemma] += 1
        if token.is_stop or len(lemma) < 4 or lemma in DOMAIN_STOPWORDS or lemma in seen:
            continue
        keyword_counts[lemma] += 1
    features.keywords = [word for word, _ in keyword_counts.most_common(MAX_JD_KEYWORDS)]

    best_domain, best_hits = "general", 0
    for domain, words in DOMAIN_KEYWORDS.items():
        hits = sum(token_counts[word] for word in words)
        if hits > best_hits:
            best_domain, best_hits = domain, hits
    features.domain = best_domain

    if any(hint in lowered for hint in SENIOR_HINTS):
        features.complexity = "senior"
    elif any(hint in lowered for hint in JUNIOR_HINTS):
        features.complexity = "junior"
    else:
        features.complexity = "mid"

    return features


def jd_text_match_factor(parsed_resume: Optional[ParsedResume], description: Optional[str]) -> float:
    """Map resume/description overlap onto a multiplier in [0.9, 1.15].

    Returns a neutral 1.0 when either side is missing.
    """
    if parsed_resume is None or not description or not description.strip():
        return 1.0

    desc_lower = description.lower()
    skill_hits = sum(1 for skill in parsed_resume.skills if skill.lower() in desc_lower)
    title_hits = 0
    for entry in parsed_resume.experience:
        for word in entry.title.lower().split():
            if len(word) > 3 and word in desc_lower:
                title_hits += 1

    ratio = (skill_hits + TITLE_WORD_WEIGHT * title_hits) / max(1, len(parsed_resume.skills))
    ratio = min(1.0, ratio)
    return round_half_up(TEXT_FACTOR_MIN + TEXT_FACTOR_SPAN * ratio, 4)


def compute_description_alignment(
    parsed_resume: Optional[ParsedResume],
    job_description: JobDescription,
) -> Optional[JDDescriptionAlignment]:
    if parsed_resume is None or not job_description.description:
        return None

    features = job_description.parsed_features or extract_jd_features(
        job_description.description, job_description.required_skills
    )
    focus_skills = features.detected_skills or list(job_description.required_skills)
    resume_skills = [skill.lower() for skill in parsed_resume.skills]
    raw_lower = parsed_resume.raw_text.lower()

    present = [
        skill for skill in focus_skills if _skill_matches(skill.lower(), resume_skills) or skill.lower() in raw_lower
    ]
    missing = [skill for skill in focus_skills if skill not in present]
    overlap = round_to_int(100 * len(present) / len(focus_skills)) if focus_skills else 0

    keywords = features.keywords
    keyword_ratio = (
        sum(1 for keyword in keywords if keyword in raw_lower) / len(keywords) if keywords else 0.0
    )
    if keyword_ratio >= 0.6:
        responsibilities = "high"
    elif keyword_ratio >= 0.3:
        responsibilities = "medium"
    else:
        responsibilities = "low"

    if overlap >= 75:
        opening = f"Strong alignment with the {job_description.role_title} description"
    elif overlap >= 50:
        opening = f"Partial alignment with the {job_description.role_title} description"
    else:
        opening = f"Limited alignment with the {job_description.role_title} description"
    gap_sentence = (
        f"Areas to validate: {', '.join(missing[:3])}." if missing else "All described skill areas are covered."
    )
    summary = (
        f"{opening}: {len(present)} of {len(focus_skills)} described skills found "
        f"and {responsibilities} overlap with stated responsibilities. {gap_sentence}"
    )

    return JDDescriptionAlignment(
        skill_overlap_percent=overlap,
        responsibilities_match=responsibilities,
        missing_areas=missing[:MAX_MISSING_AREAS],
        alignment_summary=summary,
    )


# --- Experience helpers ---------------------------------------------------------

def _duration_years(duration: str, reference_year: Optional[int]) -> float:
    if not duration:
        return 0.0
    phrase = YEARS_PHRASE_RE.search(duration)
    if phrase:
        return float(phrase.group(1))

    years = [int(value) for value in YEAR_RE.findall(duration)]
    if len(years) >= 2:
        return float(max(0, years[1] - years[0]))
    if len(years) == 1 and PRESENT_RE.search(duration) and reference_year:
        return float(max(0, reference_year - years[0]))
    return 0.0


def estimate_experience_years(parsed_resume: ParsedResume) -> float:
    """At least one year, at least one year per entry, refined by entry durations.

    Open-ended ranges ("2019 - Present") run to the latest year the resume
    itself mentions, which keeps the estimate independent of today's date.
    """
    mentioned_years = [int(value) for value in YEAR_RE.findall(parsed_resume.raw_text)]
    reference_year = max(mentioned_years) if mentioned_years else None
    from_durations = sum(
        _duration_years(entry.duration, reference_year) for entry in parsed_resume.experience
    )
    return max(1.0, float(len(parsed_resume.experience)), round_half_up(from_durations, 1))


def classify_experience(years: float, experience_range: ExperienceRange) -> ExperienceMatch:
    if years < experience_range.min:
        return ExperienceMatch.BELOW
    if years > experience_range.max:
        return ExperienceMatch.EXCEEDS
    return ExperienceMatch.MEETS


# --- Matching -------------------------------------------------------------------

def _skill_matches(skill_lower: str, resume_skills_lower: Sequence[str]) -> bool:
    return any(
        rs == skill_lower or skill_lower in rs or rs in skill_lower for rs in resume_skills_lower
    )


def match_resume_to_jd(
    parsed_resume: ParsedResume,
    required_skills: Union[Sequence[str], JobDescription],
    experience_range: Optional[ExperienceRange] = None,
) -> JDMatchResult:
    """Compare a parsed resume with a JD's required skills and experience range.

    Each required skill is matched (against parsed skills), partial (only in
    the raw text) or missing. An empty skill list yields a neutral skill score.
    A ``JobDescription`` may be passed in place of both JD arguments.
    """
    if isinstance(required_skills, JobDescription):
        experience_range = required_skills.experience_range
        required_skills = required_skills.required_skills
    if experience_range is None:
        raise TypeError("experience_range is required when skills are passed directly")

    resume_skills_lower = [skill.lower() for skill in parsed_resume.skills if skill]
    raw_lower = parsed_resume.raw_text.lower()

    matched_skills: List[str] = []
    missing_skills: List[str] = []
    partial_matches: List[str] = []

    for skill in required_skills:
        skill_lower = skill.lower()
        if _skill_matches(skill_lower, resume_skills_lower):
            matched_skills.append(skill)
        elif skill_lower in raw_lower:
            partial_matches.append(skill)
        else:
            missing_skills.append(skill)

    experience_years = estimate_experience_years(parsed_resume)
    experience_match = classify_experience(experience_years, experience_range)

    if required_skills:
        skill_score = (len(matched_skills) + len(partial_matches) * 0.5) / len(required_skills) * SKILL_WEIGHT_POINTS
    else:
        skill_score = NEUTRAL_SKILL_POINTS
    experience_score = EXPERIENCE_POINTS[experience_match]
    education_score = 10 if parsed_resume.education else 5
    overall_score = min(100, round_to_int(skill_score + experience_score + education_score))

    strength_areas: List[str] = []
    improvement_areas: List[str] = []

    if len(matched_skills) >= len(required_skills) * 0.5:
        strength_areas.append("Good skill alignment")
    if experience_match is ExperienceMatch.EXCEEDS:
        strength_areas.append("Experience exceeds requirements")

    if missing_skills:
        improvement_areas.append(f"Missing: {', '.join(missing_skills[:3])}")
    if experience_match is ExperienceMatch.BELOW:
        improvement_areas.append(
            f"Experience below the {experience_range.min}-{experience_range.max} year range"
        )

    logger.debug(
        "JD match for %s: %s matched, %s partial, %s missing, score %s",
        parsed_resume.candidate_name,
        len(matched_skills),
        len(partial_matches),
        len(missing_skills),
        overall_score,
    )

    return JDMatchResult(
        overall_score=overall_score,
        matched_skills=matched_skills,
        missing_skills=missing_skills,
        partial_matches=partial_matches,
        experience_match=experience_match,
        experience_years=experience_years,
        strength_areas=strength_areas,
        improvement_areas=improvement_areas,
    )
