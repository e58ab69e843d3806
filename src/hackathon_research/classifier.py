"""Content classification shared by every open-web discovery path.

Decides whether a search result describes a concrete hackathon project (as
opposed to a list article, announcement or blog post), extracts the project and
hackathon names, and normalizes source URLs.

Filter strictness is the permissive variant: publication-platform URLs and
list-style titles are rejected only when the text lacks concrete project,
startup or funding language.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from hackathon_research.errors import ValidationError
from hackathon_research.models import Candidate, SuccessSignal
from hackathon_research.search import SearchResult
from hackathon_research.store import UNKNOWN_HACKATHON

SUCCESS_KEYWORDS: tuple[str, ...] = (
    "raised",
    "funding",
    "million",
    "seed round",
    "series a",
    "series b",
    "investment",
    "acquired",
    "acquisition",
    "partnership",
    "launched",
    "users",
    "traction",
    "went viral",
    "backed by",
    "secured funding",
)

# URL fragments of publication platforms (articles, posts, press releases).
PUBLICATION_URL_PATTERNS: tuple[str, ...] = (
    "/blog/",
    "/blog.",
    "/posts/",
    "/pulse/",
    "/news/",
    "/press/",
    "medium.com",
    "substack.com",
    "prnewswire",
    "businesswire",
    "techcrunch.com",
    "linkedin.com/posts",
    "linkedin.com/pulse",
)

# Title openings typical of list articles and announcements.
LIST_TITLE_PREFIXES: tuple[str, ...] = (
    "announcing",
    "here are",
    "these are",
    "winners of",
    "meet the",
    "celebrating",
    "top ",
    "the best",
    "hackathon rewind",
    "what happens after",
)

# Concrete project/startup/funding language that overrides the article heuristic.
PROJECT_LANGUAGE: tuple[str, ...] = (
    "built at",
    "created at",
    "developed at",
    "we built",
    "our app",
    "our startup",
    "co-founded",
    "cofounded",
    "raised $",
    "seed round",
    "pre-seed",
    "series a",
    "y combinator",
)

PROJECT_INDICATORS: tuple[str, ...] = ("project", "startup", "app", "platform", "product")
HACKATHON_CONTEXT: tuple[str, ...] = ("hackathon", "built at", "won", "created at", "developed at")

_BOILERPLATE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bdevpost\b",
        r"\bwinners?\b",
        r"\bannouncing\b",
        r"\bannouncements?\b",
        r"^\s*here are the\b",
        r"^\s*these are the\b",
        r"\bof\s*$",
        r"^\s*celebrating innovation:\s*",
        r"^\s*\d{4} hackathon rewind:\s*",
        r"^\s*what happens after the hackathon:\s*",
        r"^\s*turning winning ideas into\b",
    )
]
_TITLE_SEPARATORS = re.compile(r"\s+[-–—|:]\s+|\s*\|\s*")

_HACK_TAIL = r"[A-Z]?[\w&'.-]*?(?:Hackathon|Hacks|Hack)(?:\s+\d{4})?"

# Ordered: event named after a preposition, HackXYZ style, any capitalized phrase.
_HACKATHON_PATTERNS = [
    re.compile(rf"\b(?:at|from|during|won|for)\s+((?:[A-Z][\w&'.-]*\s+){{0,3}}{_HACK_TAIL})\b"),
    re.compile(r"\b(Hack[A-Z][\w]*(?:\s+\d{4})?)\b"),
    re.compile(rf"\b((?:[A-Z][\w&'.-]*\s+){{0,3}}{_HACK_TAIL})\b"),
]

_DEVPOST_IN_TEXT = re.compile(r"https?://[^\s\"')]*devpost\.com[^\s\"')]*", re.IGNORECASE)
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")

MIN_NAME_LENGTH = 3


def _blob(result: SearchResult) -> str:
    return f"{result.title or ''} {result.text or ''}"


def has_project_language(text: str) -> bool:
    lowered = text.lower()
    return any(p in lowered for p in PROJECT_LANGUAGE)


def looks_like_article(result: SearchResult) -> bool:
    """True for list articles, announcements and blog posts without project language."""
    url = (result.url or "").lower()
    title = (result.title or "").strip().lower()
    article_like = any(p in url for p in PUBLICATION_URL_PATTERNS) or title.startswith(
        LIST_TITLE_PREFIXES
    )
    return article_like and not has_project_language(_blob(result))


def has_success_signal(text: str) -> bool:
    lowered = text.lower()
    return any(k in lowered for k in SUCCESS_KEYWORDS)


def detect_signal(text: str) -> SuccessSignal | None:
    lowered = text.lower()
    if "acquired" in lowered or "acquisition" in lowered:
        return SuccessSignal.ACQUISITION
    if any(k in lowered for k in ("raised", "funding", "investment", "seed round", "series")):
        return SuccessSignal.FUNDING
    if any(k in lowered for k in ("users", "traction", "launched")):
        return SuccessSignal.TRACTION
    return None


def extract_name(title: str | None) -> str:
    """Strip site names, separators and announcement boilerplate from a title."""
    if not title:
        return ""
    name = _TITLE_SEPARATORS.split(title.strip(), maxsplit=1)[0]
    for pattern in _BOILERPLATE_PATTERNS:
        name = pattern.sub(" ", name)
    return re.sub(r"\s+", " ", name).strip(" -:|,")


def extract_hackathon(text: str | None) -> str:
    if text:
        for pattern in _HACKATHON_PATTERNS:
            match = pattern.search(text)
            if match:
                hackathon = re.sub(r"\s+", " ", match.group(1)).strip()
                if 5 <= len(hackathon) < 80:
                    return hackathon
    return UNKNOWN_HACKATHON


def hackathon_year(hackathon_name: str | None) -> str | None:
    match = _YEAR.search(hackathon_name or "")
    return match.group(0) if match else None


def find_devpost_url(result: SearchResult) -> str | None:
    if result.url and "devpost.com" in result.url.lower():
        return result.url
    match = _DEVPOST_IN_TEXT.search(result.text or "")
    return match.group(0) if match else None


def normalize_url(url: str | None) -> str | None:
    if not url:
        return None
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return parsed.geturl().rstrip("/")


def sanitize_sources(sources: list[str | None]) -> list[str]:
    """Normalize, drop invalid and deduplicate URLs, keeping first-seen order."""
    cleaned: list[str] = []
    for src in sources:
        normalized = normalize_url(src)
        if normalized and normalized not in cleaned:
            cleaned.append(normalized)
    return cleaned


def source_domain(url: str | None) -> str | None:
    host = urlparse(url or "").hostname
    if not host:
        return None
    return host.removeprefix("www.")


class ContentClassifier:
    """Two-stage filter plus name extraction, producing discovery candidates."""

    def __init__(self, primary_source_domain: str = "devpost.com", max_name_length: int = 100) -> None:
        self.primary_source_domain = primary_source_domain.lower()
        self.max_name_length = max_name_length

    def accepts_name(self, name: str) -> bool:
        """Length guard: very long 'names' are headlines, not projects."""
        return MIN_NAME_LENGTH <= len(name) <= self.max_name_length and not name.lower().startswith(
            LIST_TITLE_PREFIXES
        )

    def check_structure(self, result: SearchResult, name: str) -> None:
        if looks_like_article(result):
            raise ValidationError(f"Looks like an article: {result.url}")
        if not self.accepts_name(name):
            raise ValidationError(f"Name out of bounds ({len(name)} chars)")

    def check_signal(self, result: SearchResult) -> None:
        if not has_success_signal(_blob(result)):
            raise ValidationError("No success signal")
        if self.primary_source_domain in (result.url or "").lower():
            raise ValidationError("Result is on the primary scraping target")

    def build_candidate(self, result: SearchResult) -> Candidate:
        """Run both filters and extract a candidate, or raise ValidationError."""
        if not result.url:
            raise ValidationError("Result has no URL")
        name = extract_name(result.title or result.url)
        self.check_structure(result, name)
        self.check_signal(result)

        hackathon = extract_hackathon(result.text)
        blob = _blob(result)
        return Candidate(
            name=name,
            hackathon_name=hackathon,
            hackathon_date=hackathon_year(hackathon),
            source_url=result.url,
            source_title=result.title,
            source_domain=source_domain(result.url),
            description=(result.text or "")[:500] or None,
            snippet=result.text,
            devpost_url=find_devpost_url(result),
            image_url=result.image,
            signal=detect_signal(blob),
        )

    def heuristic_is_project(self, candidate: Candidate) -> bool:
        """Soft validation: project indicators plus hackathon context."""
        text = f"{candidate.source_title or ''} {candidate.description or ''}".lower()
        has_project = candidate.name.lower() in text or any(k in text for k in PROJECT_INDICATORS)
        has_context = any(k in text for k in HACKATHON_CONTEXT)
        return has_project and has_context
