"""
Maps a free-text target onto one of a field's enumerated options.

Order, first success wins: exact value, exact label, alias group,
substring containment (both sides at least 3 chars),
Jaro-Winkler similarity above the threshold.
An empty string means "no option fits; skip this field".
"""
from typing import List, Optional

from rapidfuzz.distance import JaroWinkler

from .config import MIN_CONTAINMENT_LENGTH, OPTION_ALIASES, SIMILARITY_THRESHOLD
from .models import ExtractedField, FieldOption
from .utils import ci_match_label, normalize


def _option_value(opt: FieldOption) -> str:
    # an option without a value attribute is selected by its label
    return opt.value if opt.value.strip() else opt.label


def alias_group(target: str) -> List[str]:
    """Every alias of `target` (canonical form first), or [] when it has none."""
    t = normalize(target)
    for group in OPTION_ALIASES:
        if t in group:
            return list(group)
    return []


def _exact(options: List[FieldOption], target: str) -> Optional[FieldOption]:
    by_value = ci_match_label(target, [o.value for o in options])
    if by_value is not None:
        return next(o for o in options if o.value == by_value)
    by_label = ci_match_label(target, [o.label for o in options])
    if by_label is not None:
        return next(o for o in options if o.label == by_label)
    return None


def similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    return JaroWinkler.normalized_similarity(a, b)


def best_similar_option(options: List[FieldOption], target: str):
    """Returns (option, score) with the highest label/value similarity."""
    best, best_score = None, 0.0
    for opt in options:
        score = max(similarity(target, normalize(opt.label)), similarity(target, normalize(opt.value)))
        if score > best_score:
            best, best_score = opt, score
    return best, best_score


def resolve_option(field: ExtractedField, raw_target: str) -> str:
    target = normalize(raw_target)
    # valued options only, so "Select..." placeholders never win
    options = [o for o in field.options if o.value.strip()] or [o for o in field.options if o.label.strip()]
    if not target or not options:
        return ""

    hit = _exact(options, target)
    if hit:
        return _option_value(hit)

    for alias in alias_group(target):
        hit = _exact(options, alias)
        if hit:
            return _option_value(hit)

    for opt in options:
        label = normalize(opt.label)
        # "us" must not match "australia"
        if min(len(label), len(target)) < MIN_CONTAINMENT_LENGTH:
            continue
        if target in label or label in target:
            return _option_value(opt)

    best, score = best_similar_option(options, target)
    if best is not None and score >= SIMILARITY_THRESHOLD:
        return _option_value(best)
    return ""
