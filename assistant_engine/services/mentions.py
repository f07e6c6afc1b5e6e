"""Freelancer mention resolution for assistant replies.

Assistant text refers to freelancers three ways, tried in this order:

1. explicit tags inserted by the backend prompt, ``[FREELANCER_ID:42]``,
   optionally wrapped in markdown bold;
2. legacy id references, ``(ID: 42)`` or ``ID: 42``;
3. plain names, ``Sarah Lee`` or ``the specialist sarah_l``.

Each pass only sees text no earlier pass has claimed. A reference whose id
(or name) is not in the catalog stays literal text and stays unclaimed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from re import Match, Pattern
from typing import Protocol

from assistant_engine.clients.catalog import CatalogUnavailableError
from assistant_engine.models.freelancer import FreelancerRecord
from assistant_engine.models.mentions import (
    LiteralText,
    MentionSource,
    MentionSpan,
    ResolvedMention,
    Segment,
)

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(
    r"(?:\*\*)?\[FREELANCER_ID:(\d+)\](?:\*\*)?"
    r"|(?:\*\*)?\bFREELANCER_ID:(\d+)(?:\*\*)?"
)
LEGACY_ID_PATTERN = re.compile(r"\(ID:\s*(\d+)\)|\bID:\s*(\d+)\b")

ROLE_NOUNS = (
    "freelancer",
    "expert",
    "professional",
    "specialist",
    "candidate",
    "provider",
    "worker",
)
NAME_CANDIDATE_PATTERN = re.compile(
    r"(?:\b(?P<role>(?i:(?:" + "|".join(ROLE_NOUNS) + r")s?))[ \t]+)?"
    r"(?<![\w@])(?P<name>@?[^\W\d_][\w'-]*(?:[ \t]+[^\W\d_][\w'-]*){0,2})"
)
_TOKEN_PATTERN = re.compile(r"@?[\w'-]+")
_POSSESSIVE_SUFFIX = re.compile(r"(?:'s|')?[-']*$")


@dataclass
class ResolutionContext:
    """Per-call lookups. Built from the catalog sorted by id, descending."""

    by_id: dict[int, FreelancerRecord]
    by_name: dict[str, int]
    referenced: set[int] = field(default_factory=set)

    @classmethod
    def from_catalog(cls, catalog: Iterable[FreelancerRecord]) -> ResolutionContext:
        ordered = sorted(catalog, key=lambda record: record.id, reverse=True)
        by_id: dict[int, FreelancerRecord] = {}
        by_name: dict[str, int] = {}
        for record in ordered:
            by_id.setdefault(record.id, record)
            for name in record.names():
                # First wins, so a name shared by several freelancers maps to the highest id.
                by_name.setdefault(name_key(name), record.id)
        return cls(by_id=by_id, by_name=by_name)


class MatcherStrategy(Protocol):
    source: MentionSource

    def find(
        self, text: str, start: int, end: int, context: ResolutionContext
    ) -> Iterator[MentionSpan]:
        """Yield non-overlapping resolved spans inside ``text[start:end]``, left to right."""
        raise NotImplementedError


def name_key(name: str) -> str:
    return " ".join(name.lstrip("@").lower().split())


def unclaimed_regions(length: int, claimed: Sequence[MentionSpan]) -> list[tuple[int, int]]:
    regions: list[tuple[int, int]] = []
    cursor = 0
    for span in sorted(claimed):
        if span.start_offset > cursor:
            regions.append((cursor, span.start_offset))
        cursor = max(cursor, span.end_offset)
    if cursor < length:
        regions.append((cursor, length))
    return regions


def claim(
    text: str,
    claimed: Sequence[MentionSpan],
    strategy: MatcherStrategy,
    context: ResolutionContext,
) -> list[MentionSpan]:
    """Run one strategy over the unclaimed regions and merge its spans in."""
    spans = list(claimed)
    for start, end in unclaimed_regions(len(text), claimed):
        spans.extend(strategy.find(text, start, end, context))
    return sorted(spans)


class IdPatternMatcher:
    """Resolves matches of a pattern whose captured digits name a known freelancer.

    With ``link_once`` a freelancer already referenced earlier is left as text.
    """

    def __init__(
        self, pattern: Pattern[str], source: MentionSource, link_once: bool = False
    ) -> None:
        self.pattern = pattern
        self.source = source
        self.link_once = link_once

    def find(
        self, text: str, start: int, end: int, context: ResolutionContext
    ) -> Iterator[MentionSpan]:
        for match in self.pattern.finditer(text, start, end):
            freelancer_id = _captured_id(match)
            if freelancer_id is None or freelancer_id not in context.by_id:
                continue
            if self.link_once and freelancer_id in context.referenced:
                continue
            context.referenced.add(freelancer_id)
            yield MentionSpan(match.start(), match.end(), freelancer_id, self.source)


class NameMatcher:
    """Links capitalized names (or any handle right after a role noun) to freelancers.

    Only the first mention of a freelancer not already referenced is linked.
    """

    source = MentionSource.NAME

    def __init__(self, pattern: Pattern[str] = NAME_CANDIDATE_PATTERN) -> None:
        self.pattern = pattern

    def find(
        self, text: str, start: int, end: int, context: ResolutionContext
    ) -> Iterator[MentionSpan]:
        if not context.by_name:
            return
        pos = start
        while pos < end:
            match = self.pattern.search(text, pos, end)
            if match is None:
                return
            tokens = _capitalized_run(text, _name_tokens(text, match))
            if not tokens:
                pos = match.end()
                continue
            first_word = text[tokens[0][0] : tokens[0][1]].lstrip("@")
            if match.group("role") is None and not first_word[:1].isupper():
                pos = tokens[0][1]
                continue

            window = _longest_known_window(text, tokens, context)
            if window is None:
                # Rescan from the second word; a name may start mid-candidate.
                pos = tokens[0][1]
                continue
            window_start, window_end, freelancer_id = window
            pos = window_end
            if freelancer_id in context.referenced:
                continue
            context.referenced.add(freelancer_id)
            yield MentionSpan(window_start, window_end, freelancer_id, self.source)


DEFAULT_STRATEGIES: tuple[MatcherStrategy, ...] = (
    IdPatternMatcher(TAG_PATTERN, MentionSource.TAG),
    IdPatternMatcher(LEGACY_ID_PATTERN, MentionSource.LEGACY_ID, link_once=True),
    NameMatcher(),
)


class MentionResolver:
    def __init__(self, strategies: Sequence[MatcherStrategy] = DEFAULT_STRATEGIES) -> None:
        self._strategies = tuple(strategies)

    def find_spans(self, text: str, catalog: Iterable[FreelancerRecord]) -> list[MentionSpan]:
        context = ResolutionContext.from_catalog(catalog)
        return self._find_spans(text, context)

    def resolve(self, text: str, catalog: Iterable[FreelancerRecord]) -> list[Segment]:
        if not text:
            return [LiteralText(text)]
        context = ResolutionContext.from_catalog(catalog)
        spans = self._find_spans(text, context)
        return _to_segments(text, spans, context)

    def _find_spans(self, text: str, context: ResolutionContext) -> list[MentionSpan]:
        spans: list[MentionSpan] = []
        for strategy in self._strategies:
            spans = claim(text, spans, strategy, context)
        return spans


CatalogLoader = Callable[[], Awaitable[list[FreelancerRecord]]]


async def load_catalog_or_none(load_catalog: CatalogLoader) -> list[FreelancerRecord] | None:
    """The catalog, or None when it cannot be loaded. Failures are logged."""
    try:
        return await load_catalog()
    except CatalogUnavailableError as exc:
        logger.warning("Freelancer catalog unavailable, rendering plain text: %s", exc)
    except Exception:  # noqa: BLE001
        logger.exception("Freelancer catalog loader failed, rendering plain text")
    return None


def resolve_or_literal(
    text: str, catalog: list[FreelancerRecord] | None, resolver: MentionResolver
) -> list[Segment]:
    if catalog is None:
        return [LiteralText(text)]
    try:
        return resolver.resolve(text, catalog)
    except Exception:  # noqa: BLE001
        logger.exception("Mention resolution failed, rendering plain text")
        return [LiteralText(text)]


async def resolve_mentions(
    text: str,
    load_catalog: CatalogLoader,
    resolver: MentionResolver | None = None,
) -> list[Segment]:
    """Load the catalog and resolve; any failure degrades to the unmodified text."""
    catalog = await load_catalog_or_none(load_catalog)
    return resolve_or_literal(text, catalog, resolver or MentionResolver())


def _captured_id(match: Match[str]) -> int | None:
    for group in match.groups():
        if group is not None:
            return int(group)
    return None


def _name_tokens(text: str, match: Match[str]) -> list[tuple[int, int]]:
    offset = match.start("name")
    tokens: list[tuple[int, int]] = []
    for token in _TOKEN_PATTERN.finditer(match.group("name")):
        suffix = _POSSESSIVE_SUFFIX.search(token.group())
        trimmed_end = token.end() - (len(suffix.group()) if suffix else 0)
        if trimmed_end <= token.start():
            continue
        tokens.append((offset + token.start(), offset + trimmed_end))
    return tokens


def _longest_known_window(
    text: str, tokens: Sequence[tuple[int, int]], context: ResolutionContext
) -> tuple[int, int, int] | None:
    for size in range(len(tokens), 0, -1):
        for first in range(len(tokens) - size + 1):
            window_start = tokens[first][0]
            window_end = tokens[first + size - 1][1]
            freelancer_id = context.by_name.get(name_key(text[window_start:window_end]))
            if freelancer_id is not None:
                return window_start, window_end, freelancer_id
    return None


def _to_segments(
    text: str, spans: Sequence[MentionSpan], context: ResolutionContext
) -> list[Segment]:
    segments: list[Segment] = []
    cursor = 0
    for span in spans:
        if span.start_offset > cursor:
            segments.append(LiteralText(text[cursor : span.start_offset]))
        segments.append(
            ResolvedMention(
                span=span,
                freelancer=context.by_id[span.freelancer_id],
                text=text[span.start_offset : span.end_offset],
            )
        )
        cursor = span.end_offset
    if cursor < len(text) or not segments:
        segments.append(LiteralText(text[cursor:]))
    return segments


def _capitalized_run(text: str, tokens: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """The first token plus the capitalized words directly after it."""
    run = tokens[:1]
    for start, end in tokens[1:]:
        if not text[start].isupper():
            break
        run.append((start, end))
    return run
