import asyncio
import io
import logging
import os
import re
from typing import List, Optional, Tuple, Union

import docx
import fitz  # PyMuPDF
from pdfminer.high_level import extract_text as pdfminer_extract_text

from . import config
from .errors import ParseError
from .models import EducationEntry, ExperienceEntry, ParsedResume, ProjectEntry
from .skills import EXPERIENCE_TITLE_KEYWORDS, RESUME_LANGUAGES, RESUME_SKILL_KEYWORDS

logger = logging.getLogger(__name__)

DocumentSource = Union[str, "os.PathLike[str]", bytes, bytearray]

SUPPORTED_FORMATS = ("pdf", "docx", "txt")
EXTENSION_FORMATS = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".txt": "txt",
    ".text": "txt",
    ".md": "txt",
}

UNKNOWN_NAME = "Unknown Candidate"
MAX_SKILLS = 20
MAX_EXPERIENCE_ENTRIES = 3
MAX_EDUCATION_ENTRIES = 3
MAX_PROJECT_ENTRIES = 3
SUMMARY_LENGTH = 200

# --- Regex helpers --------------------------------------------------------------

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
NAME_LINE_RE = re.compile(r"[A-Z][a-z]+(?:[-'][A-Z]?[a-z]+)*(?:\s+[A-Z][a-z]+(?:[-'][A-Z]?[a-z]+)*){1,3}")
NAME_LABEL_RE = re.compile(r"\bName\s*[:\-]\s*([A-Za-z][A-Za-z\s'-]*)", re.IGNORECASE)
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

DEGREE_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\b(?:Ph\.?\s?D\.?|PhD|Doctorate|DOCTORATE)(?![A-Za-z])"), "Ph.D."),
    (re.compile(r"\b(?:Master(?:'s|s)?|MASTER(?:'S|S)?|M\.Sc?\.?|MSc|M\.A\.|M\.E\.|M\.?Tech|MBA)(?![A-Za-z])"), "Master's"),
    (re.compile(r"\b(?:Bachelor(?:'s|s)?|BACHELOR(?:'S|S)?|B\.Sc?\.?|BSc|BS|B\.A\.|BA|B\.E\.|B\.?Tech)(?![A-Za-z])"), "Bachelor's"),
]
INSTITUTION_RE = re.compile(
    r"(?:[A-Z][\w.&'-]*\s+){0,4}(?:University|College|Institute|School|Academy)"
    r"(?:\s+of\s+[A-Z][\w.&'-]*(?:\s+[A-Z][\w.&'-]*){0,3})?"
)
FIELD_RE = re.compile(r"\b(?:in|of)\s+([A-Z][A-Za-z&]+(?:\s+[A-Z][A-Za-z&]+){0,3})")

TITLE_RE = re.compile(r"\b(?:%s)\b" % "|".join(EXPERIENCE_TITLE_KEYWORDS))
COMPANY_HINT_REGEX = re.compile(
    r"\b(technolog(?:y|ies)|solutions?|labs?|systems?|limited|ltd|inc|corp(?:oration)?|consult(?:ing|ants)?|software|services|company|co\.?|global|digital|studio|group|llc|enterprises?|industries|networks|partners)\b",
    re.IGNORECASE,
)
MONTH_PATTERN = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|"
    r"Aug(?:ust)?|Sep(?:t|tember)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
PRESENT_PATTERN = r"(?:Present|Current|Now|Today)"
DATE_RANGE_RE = re.compile(
    rf"(?:{MONTH_PATTERN}\.?\s+)?(?:19|20)\d{{2}}\s*(?:-|to|until)\s*"
    rf"(?:(?:{MONTH_PATTERN}\.?\s+)?(?:19|20)\d{{2}}|{PRESENT_PATTERN})",
    re.IGNORECASE,
)
YEARS_PHRASE_RE = re.compile(r"\b\d{1,2}\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)
TITLE_COMPANY_SPLIT_RE = re.compile(r"\s+(?:at|@)\s+|\s*[|,]\s*|\s+-\s+")

SKILL_SECTION_RE = re.compile(
    r"(?:^|\n)[ \t]*(?:TECHNICAL SKILLS|KEY SKILLS|CORE COMPETENCIES|SKILLS)[ \t]*:?(.*?)"
    r"(?=\n[ \t]*(?:EDUCATION|EXPERIENCE|PROJECTS|WORK|CERTIFICATIONS?|LANGUAGES)\b|\Z)",
    re.IGNORECASE | re.DOTALL,
)
PROJECT_SECTION_RE = re.compile(
    r"(?:^|\n)[ \t]*(?:PERSONAL PROJECTS|PROJECTS)[ \t]*:?(.*?)"
    r"(?=\n[ \t]*(?:EDUCATION|EXPERIENCE|SKILLS|WORK|CERTIFICATIONS?|LANGUAGES)\b|\Z)",
    re.IGNORECASE | re.DOTALL,
)
PROJECT_LINE_RE = re.compile(r"(.+?)\s*(?::|\s-\s)\s*(.+)")
SECTION_TRIM_CHARS = " -*\t\u2022\u2023\u25cf\u25e6"
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"(?<![A-Za-z0-9]){re.escape(keyword)}(?![A-Za-z0-9+#])", re.IGNORECASE)


SKILL_PATTERNS = [(skill, _keyword_pattern(skill)) for skill in RESUME_SKILL_KEYWORDS]
LANGUAGE_PATTERNS = [(lang, re.compile(rf"\b{lang}\b", re.IGNORECASE)) for lang in RESUME_LANGUAGES]


# --- Text extraction ------------------------------------------------------------

def extract_text_from_file(
    source: DocumentSource,
    filename: Optional[str] = None,
    file_format: Optional[str] = None,
) -> str:
    """Extract normalised text from a PDF, DOCX, or plain-text document.

    ``source`` is either a filesystem path or the raw bytes of an upload.
    Raises ``ParseError`` for unsupported formats, unreadable documents, and
    documents whose extractable text is shorter than the configured minimum.
    """
    data, label = _read_source(source, filename)
    fmt = _resolve_format(data, label, file_format)

    if fmt == "pdf":
        text = _extract_pdf_text(data, label)
    elif fmt == "docx":
        text = _extract_docx_text(data, label)
    else:
        text = _extract_txt_text(data, label)

    normalized = _normalize_text(text)
    if len(normalized) < config.MIN_RESUME_TEXT_LENGTH:
        raise ParseError(
            f"Could not extract text from {label}. The file may be image-based or corrupt."
        )
    return normalized


def _read_source(source: DocumentSource, filename: Optional[str]) -> Tuple[bytes, str]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source), filename or "<upload>"

    path = os.fspath(source)
    if not os.path.isfile(path):
        raise ParseError(f"File not found at {path}")
    with open(path, "rb") as handle:
        return handle.read(), filename or path


def _resolve_format(data: bytes, label: str, declared: Optional[str]) -> str:
    if declared:
        fmt = declared.lower().lstrip(".")
        if fmt not in SUPPORTED_FORMATS:
            raise ParseError(f"Unsupported file format {declared!r} for {label}")
        return fmt

    ext = os.path.splitext(label)[1].lower()
    if ext:
        if ext not in EXTENSION_FORMATS:
            raise ParseError(f"Unsupported file type for {label}")
        return EXTENSION_FORMATS[ext]

    if data.startswith(b"%PDF"):
        return "pdf"
    if data.startswith(b"PK\x03\x04"):
        return "docx"
    return "txt"


def _extract_pdf_text(data: bytes, label: str) -> str:
    """Try PyMuPDF text, then PyMuPDF blocks, then pdfminer."""
    text = ""
    fallback_length = config.PDF_FALLBACK_LENGTH

    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            text = "\n".join(page.get_text("text", sort=True) for page in doc)
    except Exception as exc:
        logger.warning("PyMuPDF could not read %s: %s", label, exc)

    if len(text.strip()) < fallback_length:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                block_chunks: List[str] = []
                for page in doc:
                    for block in page.get_text("blocks"):
                        if block[4]:
                            block_chunks.append(block[4].strip())
            alt_text = "\n".join(block_chunks)
            if len(alt_text.strip()) > len(text.strip()):
                text = alt_text
        except Exception as exc:
            logger.warning("PyMuPDF block extraction failed for %s: %s", label, exc)

    if len(text.strip()) < fallback_length:
        try:
            alt_text = pdfminer_extract_text(io.BytesIO(data)) or ""
            if len(alt_text.strip()) > len(text.strip()):
                text = alt_text
        except Exception as exc:
            logger.warning("pdfminer could not read %s: %s", label, exc)

    if len(text.strip()) < fallback_length:
        logger.warning(
            "PDF text extraction produced < %s characters for %s", fallback_length, label
        )
    return text


def _extract_docx_text(data: bytes, label: str) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as exc:
        raise ParseError(f"Failed to read DOCX document {label}") from exc

    chunks = [para.text for para in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            chunks.append(" | ".join(cell.text.strip() for cell in row.cells))
    return "\n".join(chunks)


def _extract_txt_text(data: bytes, label: str) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Unrecognized file format for {label}") from exc


def _normalize_text(text: str) -> str:
    """Normalize whitespace and replace common unicode bullets/dashes."""
    if not text:
        return ""

    char_replacements = {
        "\u2022": "-",
        "\u2023": "-",
        "\u25e6": "-",
        "\u2043": "-",
        "\u2212": "-",
        "\u2013": "-",
        "\u2014": "-",
        "\u2010": "-",
        "\u2012": "-",
        "\u2015": "-",
        "\uf0b7": "-",
        "\u00ad": "-",
        "\u00b7": "-",
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\ufb01": "fi",
        "\ufb02": "fl",
        "\u00a0": " ",
        "\u2024": ".",
    }

    cleaned = text.translate(str.maketrans(char_replacements))
    cleaned = re.sub(r"\r\n?", "\n", cleaned)
    cleaned = CONTROL_CHARS_RE.sub("", cleaned)
    cleaned = re.sub(r"[ \t]+\n", "\n", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


# --- Field heuristics -----------------------------------------------------------

def _extract_name(lines: List[str]) -> str:
    for line in lines[:8]:
        cleaned = line.strip()
        if len(cleaned) < 40 and NAME_LINE_RE.fullmatch(cleaned):
            return cleaned
        label_match = NAME_LABEL_RE.search(cleaned)
        if label_match and label_match.group(1).strip():
            return label_match.group(1).strip()

    for line in lines:
        cleaned = line.strip()
        if 3 < len(cleaned) < 50 and re.fullmatch(r"[A-Za-z\s]+", cleaned):
            return cleaned
    return UNKNOWN_NAME


def _first_match(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(0).strip() if match else ""


def _extract_education(lines: List[str]) -> List[EducationEntry]:
    education: List[EducationEntry] = []

    for idx, line in enumerate(lines):
        degree_name = None
        degree_end = 0
        for pattern, name in DEGREE_PATTERNS:
            match = pattern.search(line)
            if match:
                degree_name = name
                degree_end = match.end()
                break
        if degree_name is None:
            continue

        neighbours = [line]
        if idx + 1 < len(lines):
            neighbours.append(lines[idx + 1])
        if idx > 0:
            neighbours.append(lines[idx - 1])

        institution = ""
        for candidate_line in neighbours:
            match = INSTITUTION_RE.search(candidate_line)
            if match:
                institution = match.group(0).strip()
                break

        field_match = FIELD_RE.search(line[degree_end:])
        field_name = field_match.group(1).strip() if field_match else ""
        if institution and field_name and field_name in institution:
            field_name = ""

        years = YEAR_RE.findall(line) or (YEAR_RE.findall(lines[idx + 1]) if idx + 1 < len(lines) else [])

        education.append(
            EducationEntry(
                institution=institution or "Institution detected",
                degree=degree_name,
                field=field_name,
                year=years[-1] if years else "",
            )
        )
        if len(education) >= MAX_EDUCATION_ENTRIES:
            break

    return education


def _find_skills(text: str) -> List[str]:
    return [skill for skill, pattern in SKILL_PATTERNS if pattern.search(text)]


def _extract_skills(text: str) -> List[str]:
    section = SKILL_SECTION_RE.search(text)
    skill_text = section.group(1) if section else text
    return _find_skills(skill_text)[:MAX_SKILLS]


def _find_duration(line: str) -> str:
    match = DATE_RANGE_RE.search(line) or YEARS_PHRASE_RE.search(line)
    return match.group(0).strip() if match else ""


def _split_title_company(text: str) -> Tuple[str, str]:
    parts = [
        part.strip(SECTION_TRIM_CHARS + "()")
        for part in TITLE_COMPANY_SPLIT_RE.split(text)
    ]
    parts = [part for part in parts if part and re.search(r"[A-Za-z]", part)]

    title = next((part for part in parts if TITLE_RE.search(part)), "")
    others = [part for part in parts if part != title]
    company = next((part for part in others if COMPANY_HINT_REGEX.search(part)), "")
    if not company and others:
        company = others[0]
    return title, company


def _extract_experience(lines: List[str]) -> List[ExperienceEntry]:
    experience: List[ExperienceEntry] = []

    for idx, line in enumerate(lines):
        stripped = line.strip(SECTION_TRIM_CHARS)
        if not 5 < len(stripped) < 80 or "@" in stripped:
            continue
        if not TITLE_RE.search(stripped):
            continue

        next_line = lines[idx + 1].strip(SECTION_TRIM_CHARS) if idx + 1 < len(lines) else ""
        duration = _find_duration(stripped)
        if not duration and next_line and not TITLE_RE.search(next_line):
            duration = _find_duration(next_line)

        remainder = stripped.replace(duration, " ") if duration else stripped
        title, company = _split_title_company(remainder)
        if not title:
            continue

        description = "Experience details in resume"
        for follow in lines[idx + 1: idx + 3]:
            candidate = follow.strip(SECTION_TRIM_CHARS)
            if not candidate or TITLE_RE.search(candidate):
                break
            leftover = candidate.replace(duration, "").strip(SECTION_TRIM_CHARS + "()") if duration else candidate
            if len(leftover) > 10:
                description = leftover[:160]
                break

        experience.append(
            ExperienceEntry(
                company=company or "Company detected",
                title=title,
                duration=duration,
                description=description,
            )
        )
        if len(experience) >= MAX_EXPERIENCE_ENTRIES:
            break

    return experience


def _extract_projects(text: str) -> List[ProjectEntry]:
    section = PROJECT_SECTION_RE.search(text)
    if not section:
        return []

    projects: List[ProjectEntry] = []
    for raw_line in section.group(1).splitlines():
        line = raw_line.strip(SECTION_TRIM_CHARS)
        if len(line) < 4:
            continue
        split = PROJECT_LINE_RE.match(line)
        if split:
            name, description = split.group(1), split.group(2)
        else:
            name, description = line, ""
        projects.append(
            ProjectEntry(
                name=name.strip()[:80],
                description=description.strip(),
                technologies=_find_skills(line),
            )
        )
        if len(projects) >= MAX_PROJECT_ENTRIES:
            break

    if not projects:
        projects.append(ProjectEntry(name="Projects detected", description="Project details in resume"))
    return projects


def _extract_languages(text: str) -> List[str]:
    return [lang for lang, pattern in LANGUAGE_PATTERNS if pattern.search(text)]


def calculate_confidence(parsed: ParsedResume) -> int:
    score = 0
    if parsed.candidate_name and parsed.candidate_name != UNKNOWN_NAME:
        score += 20
    if parsed.email:
        score += 15
    if parsed.phone:
        score += 10
    if parsed.education:
        score += 15
    if len(parsed.skills) >= 3:
        score += 25
    if parsed.experience:
        score += 15
    return min(100, score)


# --- Entry points ---------------------------------------------------------------

def parse_resume_text(raw_text: str) -> ParsedResume:
    """Build a ``ParsedResume`` from already-extracted resume text."""
    text = _normalize_text(raw_text)
    if len(text) < config.MIN_RESUME_TEXT_LENGTH:
        raise ParseError("Resume text is too short to parse.")

    lines = [line for line in text.splitlines() if line.strip()]
    parsed = ParsedResume(
        raw_text=text,
        candidate_name=_extract_name(lines),
        email=_first_match(EMAIL_RE, text),
        phone=_first_match(PHONE_RE, text),
        education=_extract_education(lines),
        skills=_extract_skills(text),
        experience=_extract_experience(lines),
        projects=_extract_projects(text),
        languages=_extract_languages(text),
        summary=text[:SUMMARY_LENGTH],
    )
    parsed.parse_confidence = calculate_confidence(parsed)
    logger.info(
        "Parsed resume for %s: %s skills, %s experience entries, confidence %s",
        parsed.candidate_name,
        len(parsed.skills),
        len(parsed.experience),
        parsed.parse_confidence,
    )
    return parsed


def parse_document(
    source: DocumentSource,
    filename: Optional[str] = None,
    file_format: Optional[str] = None,
) -> ParsedResume:
    return parse_resume_text(extract_text_from_file(source, filename, file_format))


async def parse_document_async(
    source: DocumentSource,
    filename: Optional[str] = None,
    file_format: Optional[str] = None,
) -> ParsedResume:
    """Awaitable ``parse_document`` for callers running an event loop."""
    return await asyncio.to_thread(parse_document, source, filename, file_format)
