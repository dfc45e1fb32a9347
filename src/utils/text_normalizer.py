"""Text normalization utilities for artist names and song titles.

Three separate normalizations live here because three separate comparisons
happen in the pipeline:

1. **Setlist titles** -- live setlists carry annotations like
   ``"Paint It Black (Live)"`` or medleys written ``"A / B"``.  The union
   song list keeps a cleaned display title and dedupes on its lower-cased
   form, so ``"Paint It Black (Live)"`` and ``"paint it black"`` collapse.

2. **Catalog text** -- track and artist strings sent to, and compared
   against, the catalog search.  Case-folded, diacritics stripped,
   bracketed text and punctuation removed.

3. **Loose names** -- alphanumeric-only names used for artist overlap
   checks and title similarity in the fallback scorer.

Every ``normalize_*`` function is idempotent.
"""

import re
import unicodedata

from rapidfuzz import fuzz

# Structural setlist entries that are not songs.
STRUCTURAL_MARKERS: frozenset[str] = frozenset({"intro", "outro", "interlude", "tape", "unknown"})

# Candidate titles containing any of these are penalised by the fallback scorer.
NOISE_TERMS: tuple[str, ...] = ("karaoke", "tribute", "instrumental", "remix", "cover")

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_BRACKETED = re.compile(r"\[[^\]]*\]")
_WHITESPACE = re.compile(r"\s+")
_QUOTES = re.compile(r"[\"'“”‘’]")
_SLASH = re.compile(r"\s*/\s*")
_PUNCTUATION = re.compile(r"[+=:;!?&]")
_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


# ------------------------------------------------------------------
# Artist query normalization
# ------------------------------------------------------------------


def normalize_artist_query(name: str) -> str:
    """Case-fold and trim a free-text artist name.

    Used for artist cache keys and the exact-name check in artist
    resolution.  Internal whitespace is kept; upstream names are compared
    with the same function.
    """
    return name.strip().lower()


def clean_artist_input(name: str) -> str:
    """Strip surrounding quotes and collapse whitespace in user-typed artist input."""
    cleaned = re.sub(r"^[\"']|[\"']$", "", name.strip())
    return _WHITESPACE.sub(" ", cleaned).strip()


def name_similarity(query: str, candidate: str) -> float:
    """Return a 0.0-1.0 fuzzy similarity between two artist names.

    Uses rapidfuzz ``token_sort_ratio`` so word order does not matter
    ("Cave Nick" vs "Nick Cave").
    """
    return fuzz.token_sort_ratio(normalize_artist_query(query), normalize_artist_query(candidate)) / 100.0


# ------------------------------------------------------------------
# Setlist title normalization
# ------------------------------------------------------------------


def normalize_setlist_title(title: str) -> str:
    """Clean a setlist song title for display.

    Removes parenthetical asides, turns slashes into spaces and collapses
    whitespace.  Case is preserved.

    Args:
        title: Raw song name from a performance record.

    Returns:
        The cleaned title, possibly empty.
    """
    cleaned = _PARENTHETICAL.sub("", title)
    cleaned = cleaned.replace("/", " ")
    return _WHITESPACE.sub(" ", cleaned).strip()


def dedupe_key(title: str) -> str:
    """Return the identity used to deduplicate songs across performances."""
    return normalize_setlist_title(title).lower()


def is_structural_marker(title: str) -> bool:
    """Return ``True`` for empty titles and entries such as ``Intro`` or ``Tape``."""
    key = dedupe_key(title)
    return not key or key in STRUCTURAL_MARKERS


# ------------------------------------------------------------------
# Catalog text normalization
# ------------------------------------------------------------------


def normalize_catalog_text(text: str) -> str:
    """Normalize an artist or title for catalog queries and strict comparison.

    Steps: case-fold, strip diacritics, drop quotes, drop ``(...)`` and
    ``[...]`` segments, turn slashes into spaces, drop ``+=:;!?&`` and
    collapse whitespace.

    Example: ``"Beyoncé - Halo (Live) [2009 Remaster]"`` becomes
    ``"beyonce - halo"``.
    """
    normalized = _strip_diacritics(text.lower())
    normalized = _QUOTES.sub("", normalized)
    normalized = _PARENTHETICAL.sub("", normalized)
    normalized = _BRACKETED.sub("", normalized)
    normalized = _SLASH.sub(" ", normalized)
    normalized = _PUNCTUATION.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def normalize_loose_name(name: str) -> str:
    """Reduce a name to lower-case ASCII letters, digits and single spaces."""
    normalized = _strip_diacritics(name.lower())
    normalized = _NON_ALNUM_SPACE.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def artist_names_overlap(target: str, candidate: str) -> bool:
    """Bidirectional substring check on loose-normalized artist names.

    ``"Nick Cave"`` overlaps ``"Nick Cave & The Bad Seeds"``.  Names that
    normalize to an empty string never overlap anything.
    """
    target_norm = normalize_loose_name(target)
    candidate_norm = normalize_loose_name(candidate)
    if not target_norm or not candidate_norm:
        return False
    return target_norm in candidate_norm or candidate_norm in target_norm


def title_similarity(candidate: str, query: str) -> float:
    """Coarse title similarity used by the fallback matcher.

    Both strings are reduced to ``[a-z0-9]``.  Returns 1.0 when equal, 0.8
    when one contains the other, else 0.0.  When either side reduces to
    nothing (e.g. non-Latin titles) only an exact case-folded match counts.
    """
    cand = _NON_ALNUM.sub("", candidate.lower())
    qry = _NON_ALNUM.sub("", query.lower())
    if not cand or not qry:
        return 1.0 if candidate.strip().lower() == query.strip().lower() else 0.0
    if cand == qry:
        return 1.0
    if cand in qry or qry in cand:
        return 0.8
    return 0.0


def contains_noise_term(title: str) -> bool:
    """Return ``True`` if *title* looks like a karaoke/tribute/remix/cover version."""
    lowered = title.lower()
    return any(term in lowered for term in NOISE_TERMS)
