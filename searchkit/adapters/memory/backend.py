"""
In-Memory Backend - Evaluates structured queries over local documents.

Used as a test fixture and for running searches without a cluster. Supports
the clauses the query builder emits plus the common filter leaves:
match_all, match, multi_match (best_fields, most_fields, phrase,
phrase_prefix, AUTO fuzziness), term, terms, range, exists, prefix,
wildcard, regexp and bool.

Scoring is a simple token-hit count, not BM25: enough to order results the
way the strategies intend (boosts, best vs most fields).
"""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from searchkit.domains.search.models import SearchHit, SearchResponse, StructuredQuery

logger = logging.getLogger(__name__)

__all__ = ["InMemorySearchBackend", "levenshtein", "auto_fuzziness"]

_TOKEN_RE = re.compile(r"\w+")

Match = tuple[bool, float]
NO_MATCH: Match = (False, 0.0)


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def auto_fuzziness(term: str) -> int:
    """Edits allowed by AUTO fuzziness: 0 up to 2 chars, 1 up to 5, else 2."""
    if len(term) <= 2:
        return 0
    if len(term) <= 5:
        return 1
    return 2


def _tokens(value: Any) -> list[str]:
    return _TOKEN_RE.findall(_text(value).lower())


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(_text(v) for v in value)
    return str(value)


def _get(doc: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted field path."""
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _split_boost(field_spec: str) -> tuple[str, float]:
    name, _, weight = field_spec.partition("^")
    return name, float(weight) if weight else 1.0


def _term_matches(query_term: str, field_terms: list[str], fuzziness: str | None) -> bool:
    if query_term in field_terms:
        return True
    if fuzziness is None:
        return False
    if str(fuzziness).upper() == "AUTO":
        allowed = auto_fuzziness(query_term)
    else:
        allowed = int(fuzziness)
    return any(levenshtein(query_term, t) <= allowed for t in field_terms)


def _phrase_matches(
    query_terms: list[str],
    field_terms: list[str],
    slop: int,
    prefix: bool = False,
) -> bool:
    """Ordered phrase match allowing ``slop`` skipped positions in total."""
    if not query_terms:
        return False

    def same(q: str, t: str, last: bool) -> bool:
        return t.startswith(q) if (prefix and last) else t == q

    last_index = len(query_terms) - 1
    for start, token in enumerate(field_terms):
        if not same(query_terms[0], token, last_index == 0):
            continue
        position, gaps, matched = start, 0, True
        for i, q in enumerate(query_terms[1:], 1):
            nxt = next(
                (
                    p
                    for p in range(position + 1, len(field_terms))
                    if same(q, field_terms[p], i == last_index)
                ),
                None,
            )
            if nxt is None:
                matched = False
                break
            gaps += nxt - position - 1
            position = nxt
        if matched and gaps <= slop:
            return True
    return False


class InMemorySearchBackend:
    """
    Search backend over documents held in memory.

    Example:
        >>> backend = InMemorySearchBackend()
        >>> backend.load("vehicles", [{"id": "1", "name": "Jeep Wrangler"}])
        >>> response = await backend.search(query)
    """

    def __init__(self) -> None:
        self._indices: dict[str, dict[str, dict[str, Any]]] = {}
        self.fail_with: Exception | None = None
        self.queries: list[StructuredQuery] = []

    def load(
        self,
        index: str,
        documents: Iterable[Mapping[str, Any]],
        id_field: str = "id",
    ) -> int:
        """
        Load fixture documents into an index.

        Args:
            index: Index name
            documents: Document payloads
            id_field: Payload key used as document id (position if absent)

        Returns:
            Number of documents loaded
        """
        docs = self._indices.setdefault(index, {})
        count = 0
        for document in documents:
            doc_id = str(document.get(id_field, len(docs)))
            docs[doc_id] = dict(document)
            count += 1
        logger.debug("Loaded %d documents into in-memory index %s", count, index)
        return count

    def count(self, index: str) -> int:
        return len(self._indices.get(index, {}))

    async def search(self, query: StructuredQuery) -> SearchResponse:
        """Evaluate a structured query against the loaded documents."""
        self.queries.append(query)
        if self.fail_with is not None:
            raise self.fail_with

        if query.index not in self._indices:
            raise LookupError(f"no such index [{query.index}]")

        clause = query.query.to_dict()
        scored: list[tuple[str, dict[str, Any], float]] = []
        for doc_id, doc in self._indices[query.index].items():
            matched, score = self._evaluate(clause, doc)
            if matched:
                scored.append((doc_id, doc, score))

        if query.sort is not None:
            reverse = query.sort.order == "desc"
            present = [s for s in scored if _get(s[1], query.sort.field) is not None]
            missing = [s for s in scored if _get(s[1], query.sort.field) is None]
            present.sort(key=lambda s: _get(s[1], query.sort.field), reverse=reverse)
            scored = present + missing
        else:
            scored.sort(key=lambda s: s[2], reverse=True)

        page = scored[query.offset : query.offset + query.limit]
        hits = [
            SearchHit(
                index=query.index,
                id=doc_id,
                score=score,
                source=self._filter_source(doc, query.source),
            )
            for doc_id, doc, score in page
        ]
        return SearchResponse(hits=hits, total=len(scored), took_ms=0)

    async def close(self) -> None:
        self._indices.clear()

    @staticmethod
    def _filter_source(doc: dict[str, Any], source: tuple[str, ...]) -> dict[str, Any]:
        if not source:
            return dict(doc)
        return {name: doc[name] for name in source if name in doc}

    # --- Clause evaluation ---

    def _evaluate(self, clause: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        if len(clause) != 1:
            raise ValueError(f"Malformed clause: {clause!r}")
        kind, body = next(iter(clause.items()))
        handler = getattr(self, f"_eval_{kind}", None)
        if handler is None:
            raise ValueError(f"Unsupported query type: {kind}")
        return handler(body, doc)

    def _eval_match_all(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        return True, float(body.get("boost", 1.0))

    def _eval_match(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        field_name, params = next(iter(body.items()))
        if not isinstance(params, Mapping):
            params = {"query": params}
        return self._match_field(
            _get(doc, field_name),
            str(params.get("query", "")),
            params.get("operator") or "or",
            params.get("fuzziness"),
            float(params.get("boost", 1.0)),
        )

    def _match_field(
        self,
        value: Any,
        text: str,
        operator: str,
        fuzziness: str | None,
        boost: float = 1.0,
    ) -> Match:
        query_terms = _tokens(text)
        field_terms = _tokens(value)
        if not query_terms or not field_terms:
            return NO_MATCH
        hits = sum(1 for q in query_terms if _term_matches(q, field_terms, fuzziness))
        required = len(query_terms) if operator.lower() == "and" else 1
        if hits < required:
            return NO_MATCH
        return True, hits * boost

    def _resolve_fields(self, field_specs: list[str], doc: Mapping[str, Any]) -> list[tuple[str, float]]:
        resolved: list[tuple[str, float]] = []
        for field_spec in field_specs or ["*"]:
            pattern, boost = _split_boost(field_spec)
            if any(ch in pattern for ch in "*?"):
                resolved.extend(
                    (name, boost)
                    for name, value in doc.items()
                    if fnmatch.fnmatchcase(name, pattern) and isinstance(value, (str, list))
                )
            else:
                resolved.append((pattern, boost))
        return resolved

    def _eval_multi_match(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        text = str(body.get("query", ""))
        match_type = body.get("type", "best_fields")
        operator = body.get("operator") or "or"
        fuzziness = body.get("fuzziness")
        slop = int(body.get("slop") or 0)

        scores: list[float] = []
        for name, boost in self._resolve_fields(list(body.get("fields") or []), doc):
            value = _get(doc, name)
            if match_type in ("phrase", "phrase_prefix"):
                if _phrase_matches(
                    _tokens(text),
                    _tokens(value),
                    slop,
                    prefix=match_type == "phrase_prefix",
                ):
                    scores.append(float(len(_tokens(text))) * boost)
                continue
            matched, score = self._match_field(value, text, operator, fuzziness, boost)
            if matched:
                scores.append(score)

        if not scores:
            return NO_MATCH
        if match_type == "most_fields":
            return True, sum(scores)
        return True, max(scores)

    def _eval_term(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        field_name, params = next(iter(body.items()))
        expected = params.get("value") if isinstance(params, Mapping) else params
        value = _get(doc, field_name)
        if isinstance(value, list):
            return (True, 1.0) if expected in value else NO_MATCH
        return (True, 1.0) if value == expected else NO_MATCH

    def _eval_terms(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        field_name, expected = next(iter(body.items()))
        value = _get(doc, field_name)
        values = value if isinstance(value, list) else [value]
        return (True, 1.0) if any(v in expected for v in values) else NO_MATCH

    def _eval_range(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        field_name, bounds = next(iter(body.items()))
        value = _get(doc, field_name)
        if value is None:
            return NO_MATCH
        checks = {
            "gte": lambda b: value >= b,
            "gt": lambda b: value > b,
            "lte": lambda b: value <= b,
            "lt": lambda b: value < b,
        }
        for key, check in checks.items():
            if key in bounds and not check(bounds[key]):
                return NO_MATCH
        return True, 1.0

    def _eval_exists(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        return (True, 1.0) if _get(doc, body["field"]) is not None else NO_MATCH

    def _eval_prefix(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        field_name, params = next(iter(body.items()))
        prefix = params.get("value") if isinstance(params, Mapping) else params
        value = _get(doc, field_name)
        candidates = [_text(value), *_tokens(value)]
        return (True, 1.0) if any(c.startswith(prefix) for c in candidates) else NO_MATCH

    def _pattern_match(self, body: Mapping[str, Any], doc: Mapping[str, Any], wildcard: bool) -> Match:
        field_name, params = next(iter(body.items()))
        if not isinstance(params, Mapping):
            params = {"value": params}
        flags = re.IGNORECASE if params.get("case_insensitive") else 0
        source = fnmatch.translate(params["value"]) if wildcard else params["value"]
        pattern = re.compile(source, flags)

        value = _get(doc, field_name)
        if value is None:
            return NO_MATCH
        candidates = [_text(value), *_tokens(value)]
        return (True, 1.0) if any(pattern.fullmatch(c) for c in candidates) else NO_MATCH

    def _eval_wildcard(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        return self._pattern_match(body, doc, wildcard=True)

    def _eval_regexp(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        return self._pattern_match(body, doc, wildcard=False)

    def _eval_bool(self, body: Mapping[str, Any], doc: Mapping[str, Any]) -> Match:
        score = 0.0

        for clause in body.get("must", []):
            matched, clause_score = self._evaluate(clause, doc)
            if not matched:
                return NO_MATCH
            score += clause_score

        for clause in body.get("filter", []):
            if not self._evaluate(clause, doc)[0]:
                return NO_MATCH

        for clause in body.get("must_not", []):
            if self._evaluate(clause, doc)[0]:
                return NO_MATCH

        should = body.get("should", [])
        if should:
            results = [self._evaluate(clause, doc) for clause in should]
            matched_count = sum(1 for matched, _ in results if matched)
            minimum = body.get("minimum_should_match")
            if minimum is None:
                minimum = 0 if (body.get("must") or body.get("filter")) else 1
            if matched_count < int(minimum):
                return NO_MATCH
            score += sum(s for matched, s in results if matched)

        return True, score
