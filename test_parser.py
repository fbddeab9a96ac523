import pytest
from pydantic import ValidationError

from autofill_agent.parser import (
    LlmAction, extract_json_block, parse_actions, parse_fragments, parse_repaired,
    parse_strict, parse_with_reasons, repair_json,
)


def test_unquoted_keys_and_trailing_comma():
    actions = parse_actions('[{selector:"#a", type:"setValue", value:"x",}]')
    assert len(actions) == 1
    assert actions[0].selector == "#a"
    assert actions[0].value == "x"


def test_structured_shape_preferred():
    raw = '{"actions": [{"selector": "#a", "type": "setSelect", "value": "US", "fieldLabel": "Country"}]}'
    actions = parse_strict(raw).actions
    assert actions[0].field_label == "Country"


def test_bare_array_and_single_object():
    assert len(parse_strict('[{"selector": "#a", "type": "clickNext"}]').actions) == 1
    assert len(parse_strict('{"selector": "#a", "type": "setValue", "value": "v"}').actions) == 1


def test_fenced_block_is_extracted():
    raw = 'Here you go:\n```json\n{"actions": [{"selector": "#a", "type": "setValue", "value": "1"}]}\n```\nDone.'
    assert extract_json_block(raw).startswith('{"actions"')
    assert parse_actions(raw)[0].value == "1"


def test_bracket_span_extracted_from_prose():
    raw = 'Sure! [{"selector": "#b", "type": "setCheckbox", "value": true}] hope that helps'
    actions = parse_actions(raw)
    assert actions[0].value == "true"


def test_schema_defaults_and_clamping():
    a = LlmAction.model_validate({"selector": " #a ", "type": "setValue", "confidence": 7})
    assert (a.selector, a.field_label, a.value, a.reasoning, a.confidence) == ("#a", "", "", "", 1.0)
    assert LlmAction.model_validate({"selector": "#a", "type": "setValue", "confidence": "high"}).confidence == 0.6
    assert LlmAction.model_validate({"selector": "#a", "type": "setValue", "confidence": -2}).confidence == 0.0


@pytest.mark.parametrize("item", [
    {"selector": "", "type": "setValue"},
    {"selector": "#a", "type": "submit"},
    {"type": "setValue", "value": "x"},
    {"selector": 12, "type": "setValue"},
])
def test_schema_rejects(item):
    with pytest.raises(ValidationError):
        LlmAction.model_validate(item)


def test_invalid_items_dropped_valid_kept():
    raw = '[{"selector": "#a", "type": "explode"}, {"selector": "#b", "type": "setValue", "value": "ok"}]'
    actions = parse_actions(raw)
    assert [a.selector for a in actions] == ["#b"]


def test_strict_reports_reason():
    attempt = parse_strict("{not json")
    assert not attempt.ok
    assert attempt.reason.startswith("invalid JSON")
    assert parse_strict('{"foo": 1}').reason == "JSON has no actions list"


def test_repair_single_quotes_and_unbalanced():
    text = "[{'selector': '#a', 'type': 'setValue', 'value': 'it\"s'}"
    fixed = repair_json(text)
    assert fixed.endswith("]")
    assert parse_repaired(text).actions[0].value == 'it"s'


def test_repair_leaves_string_contents_alone():
    text = '[{"selector": "#a", "type": "setValue", "value": "a, }b"},]'
    assert parse_repaired(text).actions[0].value == "a, }b"


def test_fragment_salvage_keeps_valid_objects():
    raw = ('garbage {"selector": "#a", "type": "setValue", "value": "1"} more '
           '{"selector": "#b", "type": "bogus"} {selector: "#c", type: "setRadio", value: "y"} [[[')
    attempt = parse_fragments(raw)
    assert [a.selector for a in attempt.actions] == ["#a", "#c"]


def test_total_failure_returns_none_with_reasons():
    attempt = parse_with_reasons("I cannot help with that.")
    assert attempt.actions is None
    assert "no salvageable action objects" in attempt.reason
    assert parse_actions("") is None
    assert parse_with_reasons("   ").reason == "empty response"
