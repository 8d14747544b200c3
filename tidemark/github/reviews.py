"""Collapse a pull request's review history into one verdict per reviewer."""

from __future__ import annotations

import collections.abc as cabc

from .models import Review, ReviewState

_DECISIVE_STATES = frozenset({ReviewState.APPROVED, ReviewState.CHANGES_REQUESTED})


def _pick_verdict(reviews: cabc.Sequence[Review]) -> Review | None:
    """Return the newest decisive review, else the newest comment review."""
    for review in reviews:
        if review.state in _DECISIVE_STATES:
            return review
    for review in reviews:
        if review.state == ReviewState.COMMENTED:
            return review
    return None


def resolve_verdicts(reviews: cabc.Iterable[Review]) -> list[Review]:
    """Return at most one review per author, newest authors first.

    An approval or change request outranks any later comment-only review, so
    a reviewer who approved and then left a comment still counts as having
    approved. Reviews without an author login are dropped, as are authors
    whose only reviews are pending or dismissed.
    """
    authored = [
        (review.author.login, review)
        for review in reviews
        if review.author is not None and review.author.login
    ]
    authored.sort(key=lambda pair: pair[1].updated_at, reverse=True)

    by_author: dict[str, list[Review]] = {}
    for login, review in authored:
        by_author.setdefault(login, []).append(review)

    verdicts: list[Review] = []
    for author_reviews in by_author.values():
        verdict = _pick_verdict(author_reviews)
        if verdict is not None:
            verdicts.append(verdict)
    return verdicts
