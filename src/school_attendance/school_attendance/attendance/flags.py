"""Behavior and merit flag resolution for legacy attendance documents.

Stored records carry the same flag under many field names, and older
records only mention it in free-text notes. The alias tables below are
consulted once, when a record is normalized, so the rest of the code only
sees `has_behavior_issue` / `has_merit`.

The notes scan is a best-effort heuristic: it is a plain case-insensitive
substring search without negation handling, so "not disruptive today" still
raises the behavior flag.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..common.validators import truthy_flag

BEHAVIOR_FLAG_ALIASES = (
    "hasBehaviorIssue",
    "hasFlag",
    "behaviorFlag",
    "flagged",
    "behavior_issue",
    "has_behavior_issue",
    "behaviorIssues",
    "disciplinary",
    "conduct_issue",
)

BEHAVIOR_KEYWORDS = ("behavior", "disruptive", "misconduct", "inappropriate", "discipline", "warned")

MERIT_FLAG_ALIASES = (
    "hasMerit",
    "merit",
    "meritFlag",
    "hasGoodBehavior",
    "excellence",
    "has_merit",
    "meritAwarded",
    "goodBehavior",
    "exemplary",
)

MERIT_KEYWORDS = ("merit", "excellent", "outstanding", "exemplary", "good behavior", "recognition")

# Written next to hasBehaviorIssue on save so older readers keep working.
LEGACY_BEHAVIOR_MIRRORS = ("hasFlag", "behaviorFlag", "flagged")


def notes_mention(notes: Any, keywords) -> bool:
    if not isinstance(notes, str) or not notes:
        return False
    lowered = notes.lower()
    return any(keyword in lowered for keyword in keywords)


def _check(raw: Mapping[str, Any], aliases, keywords, scan_notes: bool) -> bool:
    for field in aliases:
        if truthy_flag(raw.get(field)):
            return True
    return scan_notes and notes_mention(raw.get("notes"), keywords)


def check_behavior_flag(raw: Mapping[str, Any], *, scan_notes: bool = True) -> bool:
    return _check(raw, BEHAVIOR_FLAG_ALIASES, BEHAVIOR_KEYWORDS, scan_notes)


def check_merit_flag(raw: Mapping[str, Any], *, scan_notes: bool = True) -> bool:
    return _check(raw, MERIT_FLAG_ALIASES, MERIT_KEYWORDS, scan_notes)


def behavior_mirrors(has_behavior_issue: bool) -> dict[str, bool]:
    return {field: bool(has_behavior_issue) for field in LEGACY_BEHAVIOR_MIRRORS}
