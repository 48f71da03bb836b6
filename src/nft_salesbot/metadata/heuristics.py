"""Text heuristics for pulling project and artist names out of loose metadata.

Every function here is pure and operates on already-decoded values, so the
provider adapters stay thin and these rules can be tested on their own.
"""

from __future__ import annotations

import re
from collections import deque
from typing import Any, Iterable

MAX_NESTED_DEPTH = 3

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_EDITION_SUFFIX_RE = re.compile(r"\s*#\s*\d+\s*$")
_ARTIST_TRAIT_RE = re.compile(r"^\s*(artist|creator|created by|author)\s*$", re.IGNORECASE)
_ARTIST_SUBSTRING_RE = re.compile(r"artist|creator|author", re.IGNORECASE)
_NAME_BY_ARTIST_RE = re.compile(r"^(?P<name>.+?)\s+by\s+(?P<artist>.+)$", re.IGNORECASE)
# First word may be any case ("xCopy"), following words must be capitalized,
# so "by Tyler Hobbs is a series" stops after "Hobbs".
_BY_WORDS_RE = re.compile(
    r"\b[Bb]y\s+(?P<artist>[A-Za-z0-9][\w'.-]*(?:\s+[A-Z0-9][\w'.-]*){0,3})"
)
# Sentence end after a word of two or more letters; "J. R. Smith" survives
_SENTENCE_END_RE = re.compile(r"(?<=\w\w)[.!?]\s")


def clean(value: Any) -> str | None:
    """Stripped non-empty string, or None."""
    if not isinstance(value, str):
        return None
    value = " ".join(value.split())
    return value or None


def is_address(value: str | None) -> bool:
    return bool(value) and bool(_ADDRESS_RE.match(value.strip()))


def strip_edition_suffix(name: str) -> str:
    """'Fidenza #313' -> 'Fidenza'."""
    return _EDITION_SUFFIX_RE.sub("", name).strip()


def _title_word(word: str) -> str:
    return word[:1].upper() + word[1:] if word else word


def slug_to_title(slug: str) -> tuple[str | None, str | None]:
    """Turn an OpenSea-style slug into (title, artist).

    'chromie-squiggle-by-snowfro' -> ('Chromie Squiggle', 'Snowfro').
    A slug without a '-by-' segment yields no artist.
    """
    slug = (slug or "").strip().lower()
    if not slug:
        return None, None
    artist = None
    if "-by-" in slug:
        slug, _, artist_slug = slug.rpartition("-by-")
        artist = " ".join(_title_word(w) for w in artist_slug.split("-") if w) or None
    title = " ".join(_title_word(w) for w in re.split(r"[-_]+", slug) if w)
    return title or None, artist


def split_name_by_artist(name: str | None) -> tuple[str | None, str | None]:
    """'Fidenza by Tyler Hobbs' -> ('Fidenza', 'Tyler Hobbs')."""
    name = clean(name)
    if not name:
        return None, None
    m = _NAME_BY_ARTIST_RE.match(name)
    if not m:
        return name, None
    return m.group("name").strip(), clean(m.group("artist"))


def find_by_artist(text: str | None) -> str | None:
    """Scan free text for a 'by <Name>' credit."""
    text = clean(text)
    if not text:
        return None
    m = _BY_WORDS_RE.search(text)
    if not m:
        return None
    artist = _SENTENCE_END_RE.split(m.group("artist"), maxsplit=1)[0].rstrip(".'-")
    return artist or None


def _trait_label(trait: dict[str, Any]) -> str:
    return str(trait.get("trait_type") or trait.get("key") or "")


def artist_from_traits(traits: Iterable[Any], loose: bool = False) -> str | None:
    """Artist from an attribute list.

    Strict mode only accepts attributes named artist/creator/created by/author;
    loose mode accepts any attribute whose name contains artist/creator/author.
    """
    for trait in traits or []:
        if not isinstance(trait, dict):
            continue
        label = _trait_label(trait)
        matcher = _ARTIST_SUBSTRING_RE.search if loose else _ARTIST_TRAIT_RE.match
        if label and matcher(label):
            value = clean(trait.get("value"))
            if value:
                return value
    return None


def artist_from_trait_values(traits: Iterable[Any]) -> str | None:
    """Look for a 'by <Name>' credit inside free-text attribute values."""
    for trait in traits or []:
        if isinstance(trait, dict):
            artist = find_by_artist(clean(trait.get("value")))
            if artist:
                return artist
    return None


def find_nested(obj: Any, keys: Iterable[str], max_depth: int = MAX_NESTED_DEPTH) -> str | None:
    """Breadth-first search for the first non-empty string under any of `keys`.

    Stops descending below `max_depth` levels of nesting.
    """
    wanted = tuple(keys)
    queue: deque[tuple[Any, int]] = deque([(obj, 0)])
    while queue:
        node, depth = queue.popleft()
        if isinstance(node, dict):
            for key in wanted:
                value = clean(node.get(key))
                if value:
                    return value
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth < max_depth:
            queue.extend((child, depth + 1) for child in children if isinstance(child, (dict, list)))
    return None
