"""Tests for LLM JSON parsing."""

import pytest

from brain_battle.agent.llm_utils import parse_llm_json_object


class TestDirectParsing:
    """Clean JSON objects."""

    def test_parse_dict(self):
        assert parse_llm_json_object('{"key": "value"}') == {"key": "value"}

    def test_parse_empty_dict(self):
        assert parse_llm_json_object("{}") == {}

    def test_parse_nested(self):
        result = parse_llm_json_object('{"outer": {"inner": [1, 2, 3]}}')
        assert result == {"outer": {"inner": [1, 2, 3]}}

    def test_parse_with_unicode(self):
        """Formulas keep their symbols."""
        assert parse_llm_json_object('{"formula": "ΔU = Q − W"}') == {"formula": "ΔU = Q − W"}

    def test_parse_with_whitespace(self):
        assert parse_llm_json_object('  \n  {"key": "value"}  \n  ') == {"key": "value"}


class TestTrailingCommaFix:
    def test_trailing_comma_in_dict(self):
        assert parse_llm_json_object('{"a": 1, "b": 2,}') == {"a": 1, "b": 2}

    def test_trailing_comma_nested(self):
        result = parse_llm_json_object('{"items": [1, 2,], "count": 2,}')
        assert result == {"items": [1, 2], "count": 2}


class TestCodeBlockExtraction:
    def test_extract_json_code_block(self):
        content = """```json
{"key": "value"}
```"""
        assert parse_llm_json_object(content) == {"key": "value"}

    def test_extract_plain_code_block(self):
        content = """```
{"key": "value"}
```"""
        assert parse_llm_json_object(content) == {"key": "value"}

    def test_code_block_with_surrounding_text(self):
        content = """Here are the key terms:

```json
{"key_terms": [{"term": "Entropy",}]}
```

Let me know if you need more."""
        assert parse_llm_json_object(content) == {"key_terms": [{"term": "Entropy"}]}


class TestEmbeddedObject:
    """Objects surrounded by prose."""

    def test_object_after_prose(self):
        assert parse_llm_json_object('Sure! {"outline": ["Intro"]}') == {"outline": ["Intro"]}

    def test_object_followed_by_chatter(self):
        content = '{"diagrams": []} I hope this helps {"not": "this one"}'
        assert parse_llm_json_object(content) == {"diagrams": []}

    def test_braces_inside_strings(self):
        content = 'Result: {"formula": "f(x) = {x | x > 0}", "page": 4}'
        assert parse_llm_json_object(content) == {"formula": "f(x) = {x | x > 0}", "page": 4}


class TestErrors:
    def test_empty_string(self):
        with pytest.raises(ValueError, match="Empty LLM response"):
            parse_llm_json_object("")

    def test_none(self):
        with pytest.raises(ValueError, match="Empty LLM response"):
            parse_llm_json_object(None)

    def test_whitespace_only(self):
        with pytest.raises(ValueError, match="Empty LLM response"):
            parse_llm_json_object("   \n  ")

    def test_no_json(self):
        with pytest.raises(ValueError, match="no valid JSON found"):
            parse_llm_json_object("I cannot help with that request.")

    def test_top_level_list_rejected(self):
        with pytest.raises(ValueError, match="Expected a JSON object, got list"):
            parse_llm_json_object('["Entropy", "Enthalpy"]')
