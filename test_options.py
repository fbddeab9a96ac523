from autofill_agent.models import ExtractedField, FieldOption
from autofill_agent.options import alias_group, resolve_option, similarity


def _select(*options):
    return ExtractedField(id="c", selector="#c", kind="select",
                          options=tuple(FieldOption(label=l, value=v) for l, v in options))


US_ONLY = _select(("United States", "US"))


def test_country_targets_resolve_to_value():
    for target in ("US", "usa", "United States", "Unted Sates"):
        assert resolve_option(US_ONLY, target) == "US", target


def test_unrelated_target_is_no_match():
    assert resolve_option(US_ONLY, "Canada") == ""


def test_exact_value_beats_label():
    field = _select(("Remote", "onsite"), ("On-site", "remote"))
    assert resolve_option(field, "remote") == "remote"


def test_exact_label_case_insensitive():
    field = _select(("Yes, I am authorized", "auth_yes"), ("No", "auth_no"))
    assert resolve_option(field, "  NO ") == "auth_no"


def test_alias_group_canonical_first():
    assert alias_group("U.S.A.")[0] == "united states"
    assert alias_group("Atlantis") == []


def test_alias_matches_abbreviated_label():
    field = _select(("UK", "gb"), ("Ireland", "ie"))
    assert resolve_option(field, "United Kingdom") == "gb"


def test_substring_either_direction():
    field = _select(("Bachelor's Degree", "ba"), ("Master's Degree", "ma"))
    assert resolve_option(field, "master's") == "ma"
    field = _select(("Male", "m"), ("Female", "f"), ("Prefer not", "x"))
    assert resolve_option(field, "I prefer not to say") == "x"


def test_similarity_threshold_rejects_weak_match():
    field = _select(("Engineering", "eng"), ("Marketing", "mkt"))
    assert similarity("finance", "marketing") < 0.85
    assert resolve_option(field, "Finance") == ""


def test_placeholder_option_never_selected():
    field = _select(("Select...", ""), ("Yes", "1"), ("No", "0"))
    assert resolve_option(field, "select") == ""
    assert resolve_option(field, "true") == "1"


def test_label_only_options_return_label():
    field = ExtractedField(id="r", selector="#r", kind="radio",
                           options=(FieldOption("Yes", ""), FieldOption("No", "")))
    assert resolve_option(field, "y") == "Yes"


def test_empty_inputs():
    assert resolve_option(US_ONLY, "") == ""
    assert resolve_option(_select(), "US") == ""


def test_short_target_is_not_a_substring_hit():
    field = _select(("Australia", "AU"), ("Russia", "RU"))
    assert resolve_option(field, "US") == ""
