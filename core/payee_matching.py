"""
Payee → category matching.

Rules are either case-insensitive substrings or case-insensitive regexes.
Precedence:
  1. The first regex rule that matches (rules arrive newest-modified first).
  2. Otherwise the substring rule with the longest pattern; on equal length
     the newest-modified rule wins.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence

from django.db.models import F
from django.utils import timezone

from .models import PayeeMatchingRule, Workspace

logger = logging.getLogger(__name__)


def rules_for_workspace(workspace: Workspace) -> list[PayeeMatchingRule]:
    return list(
        PayeeMatchingRule.objects.filter(workspace=workspace).order_by("-modified_at", "-id")
    )


def is_valid_regex(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def _regex_matches(payee: str, rule: PayeeMatchingRule) -> bool:
    try:
        return re.search(rule.payee_pattern, payee, flags=re.IGNORECASE) is not None
    except re.error:
        logger.warning("Skipping payee rule %s with invalid regex %r", rule.key, rule.payee_pattern)
        return False


def find_best_rule(payee: str, rules: Sequence[PayeeMatchingRule]) -> Optional[PayeeMatchingRule]:
    if not payee or not payee.strip():
        return None

    best_regex: Optional[PayeeMatchingRule] = None
    best_substring: Optional[PayeeMatchingRule] = None
    longest = 0
    lowered = payee.lower()

    for rule in rules:
        if rule.payee_is_regex:
            if best_regex is None and _regex_matches(payee, rule):
                best_regex = rule
            continue
        pattern = rule.payee_pattern or ""
        if pattern and pattern.lower() in lowered and len(pattern) > longest:
            longest = len(pattern)
            best_substring = rule

    return best_regex or best_substring


def find_best_match(payee: str, rules: Sequence[PayeeMatchingRule]) -> Optional[str]:
    """Return the category of the winning rule, or None."""
    rule = find_best_rule(payee, rules)
    return rule.category if rule else None


def record_rule_usage(rules: Iterable[PayeeMatchingRule]) -> None:
    """Bump `match_count` and `last_used_at` once per rule occurrence."""
    counts: dict[int, int] = {}
    for rule in rules:
        counts[rule.pk] = counts.get(rule.pk, 0) + 1
    now = timezone.now()
    for pk, count in counts.items():
        PayeeMatchingRule.objects.filter(pk=pk).update(
            match_count=F("match_count") + count,
            last_used_at=now,
        )
