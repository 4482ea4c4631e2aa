"""
Pinboard API: Search Ranking and Autocomplete Heuristics
==========================================================

What:  Pure functions that score pins against a query and turn pin text
       into ranked autocomplete suggestions.
Why:   Kept free of I/O so the heuristics can be tested directly; the
       search service does the querying and calls into here.

Pin relevance (additive):
    title contains q        50      tag contains q          40
    title starts with q    +20      a tag equals q          +5
    title equals q         +35      description contains q  30
    category contains q     10      description starts q    +5
    category equals q      +10      each like +3, each comment +2

    Which yields: exact title (105) > title prefix (70) > title substring
    (50) > exact tag (45) > tag substring (40) > description (30-35) >
    category (10-20), with engagement as a tie-breaker.

Autocomplete:
    keywords  cleaned words from title, category and tags (stop words
              removed) plus adjacent-word bigrams from title and each tag
    variants  keyword + " " + suffix for a fixed suffix list
    ranking   prefix matches, then interior substring matches, then
              suffix matches; de-duplicated; at most 7
"""

import re
from collections import Counter
from typing import Any, Iterable, List, Sequence

STOPWORDS = frozenset({
    "the", "a", "an", "of", "and", "to", "in", "for", "on", "with", "at", "is",
})

SUFFIXES = (
    "aesthetic",
    "drawing",
    "ideas",
    "wallpaper",
    "design",
    "background",
    "tutorial",
    "art",
)

MAX_SUGGESTIONS = 7

_NON_WORD = re.compile(r"[^a-z0-9\s]")


# ══════════════════════════════════════════════════════════════════════════
# Query terms
# ══════════════════════════════════════════════════════════════════════════

def search_terms(query: str) -> List[str]:
    """
    Lower-cased query plus naive singular forms, de-duplicated.

    "dresses" → ["dresses", "dress", "dresse"]
    """
    q = (query or "").strip().lower()
    if not q:
        return []
    candidates = [q]
    if q.endswith("es") and len(q) > 2:
        candidates.append(q[:-2])
    if q.endswith("s") and len(q) > 1:
        candidates.append(q[:-1])
    return list(dict.fromkeys(candidates))


LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """
    Substring pattern for ILIKE with the wildcards in `term` escaped.
    Use together with escape=LIKE_ESCAPE.

    "50%_off" → "%50\\%\\_off%"
    """
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


# ══════════════════════════════════════════════════════════════════════════
# Pin scoring
# ══════════════════════════════════════════════════════════════════════════

def score_pin(pin: Any, query: str) -> int:
    q = (query or "").strip().lower()
    if not q:
        return 0

    title = (pin.title or "").lower()
    description = (pin.description or "").lower()
    category = (pin.category or "").lower()
    tags = [str(t).lower() for t in (pin.tags or [])]

    score = 0

    if q in title:
        score += 50
    if title.startswith(q):
        score += 20
    if title == q:
        score += 35

    if any(q in t for t in tags):
        score += 40
    if q in tags:
        score += 5

    if q in description:
        score += 30
    if description.startswith(q):
        score += 5

    if q in category:
        score += 10
    if category == q:
        score += 10

    score += (pin.likes_count or 0) * 3
    score += (pin.comments_count or 0) * 2
    return score


def rank_pins(pins: Sequence[Any], query: str) -> List[Any]:
    """Pins sorted by score, highest first; equal scores keep input order."""
    scored = [(score_pin(pin, query), index, pin) for index, pin in enumerate(pins)]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [pin for _, _, pin in scored]


# ══════════════════════════════════════════════════════════════════════════
# Autocomplete
# ══════════════════════════════════════════════════════════════════════════

def clean_word(text: str) -> str:
    if not text:
        return ""
    return _NON_WORD.sub("", text.lower().strip())


def _words(text: str) -> List[str]:
    return [w for w in clean_word(text).split() if w]


def _bigrams(words: List[str]) -> List[str]:
    return [
        f"{first} {second}"
        for first, second in zip(words, words[1:])
        if first not in STOPWORDS and second not in STOPWORDS
    ]


def extract_keywords(pin: Any) -> List[str]:
    """Keywords for one pin, in first-seen order."""
    keywords: List[str] = []

    title_words = _words(pin.title or "")
    keywords.extend(w for w in title_words if w not in STOPWORDS)
    keywords.extend(_bigrams(title_words))

    category = clean_word(pin.category or "")
    if category and category not in STOPWORDS:
        keywords.append(category)

    for tag in pin.tags or []:
        tag_words = _words(str(tag))
        keywords.extend(w for w in tag_words if w not in STOPWORDS)
        keywords.extend(_bigrams(tag_words))

    return list(dict.fromkeys(keywords))


def generate_variants(keyword: str) -> List[str]:
    base = keyword.lower()
    return [base] + [f"{base} {suffix}" for suffix in SUFFIXES]


def rank_suggestions(candidates: Iterable[str], query: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
    """
    Bucket candidates by where the query occurs in them.

    A candidate that both starts and ends with the query counts as a
    prefix match; the suffix bucket only holds ones that end with it.
    """
    q = clean_word(query)
    if not q:
        return []

    prefix: List[str] = []
    contains: List[str] = []
    suffix: List[str] = []

    for candidate in candidates:
        if candidate.startswith(q):
            prefix.append(candidate)
        elif candidate.endswith(q):
            suffix.append(candidate)
        elif q in candidate:
            contains.append(candidate)

    ordered = list(dict.fromkeys(prefix + contains + suffix))
    return ordered[:limit]


def build_suggestions(pins: Iterable[Any], query: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
    """
    Per-request keyword index: keywords of the given pins, most frequent
    first, followed by their suffix variants, ranked against the query.
    """
    frequency: Counter = Counter()
    for pin in pins:
        frequency.update(extract_keywords(pin))

    keywords = [kw for kw, _ in frequency.most_common()]
    candidates: List[str] = list(keywords)
    for keyword in keywords:
        candidates.extend(generate_variants(keyword)[1:])

    return rank_suggestions(candidates, query, limit)
