"""
Tests for model output parsing

The extractor must accept a ```json fence, any fence, a brace-delimited slice
or bare JSON, preferring the most explicit framing.
"""
import json
import sys
from pathlib import Path

import pytest

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from pagegen_api.core.spec_extractor import SpecParseError, extract_json_object


SPEC = {
    "title": "Crumb & Co.",
    "hero": {
        "headline": "Bread worth waking up for",
        "subheadline": "Small-batch sourdough baked at dawn.",
        "ctaText": "Order now",
    },
    "sections": [
        {"title": "Our flour", "body": "Stone-milled, local wheat."},
        {"title": "Pickup", "body": "Every morning from 7am."},
    ],
}


class TestFramings:
    """Each supported output framing yields the embedded object"""

    def test_json_fence(self):
        text = f"Here is your spec:\n```json\n{json.dumps(SPEC, indent=2)}\n```\nEnjoy!"
        assert extract_json_object(text) == SPEC

    def test_json_fence_is_case_insensitive(self):
        text = f"```JSON\n{json.dumps(SPEC)}\n```"
        assert extract_json_object(text) == SPEC

    def test_unlabeled_fence(self):
        text = f"Sure.\n```\n{json.dumps(SPEC)}\n```"
        assert extract_json_object(text) == SPEC

    def test_brace_slice_with_surrounding_prose(self):
        text = f"The page spec is {json.dumps(SPEC)} - let me know if you want changes."
        assert extract_json_object(text) == SPEC

    def test_bare_json(self):
        assert extract_json_object(json.dumps(SPEC)) == SPEC

    def test_json_fence_preferred_over_earlier_plain_fence(self):
        """A labeled fence wins even when an unlabeled one comes first"""
        text = "```\n{\"title\": \"draft\"}\n```\n\n```json\n{\"title\": \"final\"}\n```"
        assert extract_json_object(text) == {"title": "final"}


class TestFallthrough:
    """A framing that is present but broken falls through to the next one"""

    def test_broken_json_fence_falls_back_to_braces(self):
        """Both fence strategies fail, the first-{ to last-} slice is the trailing object"""
        text = "```json\nnot json at all\n```\n" + json.dumps(SPEC)
        assert extract_json_object(text) == SPEC

    def test_unlabeled_fence_with_language_tag_falls_back(self):
        text = "```html\n<div>nope</div>\n```\nSpec: " + json.dumps(SPEC)
        assert extract_json_object(text) == SPEC

    def test_non_object_json_is_rejected(self):
        with pytest.raises(SpecParseError):
            extract_json_object("[1, 2, 3]")


class TestFailures:
    """When no framing works the caller gets SpecParseError"""

    def test_plain_prose_fails(self):
        with pytest.raises(SpecParseError):
            extract_json_object("I'm sorry, I can't help with that request")

    def test_empty_text_fails(self):
        with pytest.raises(SpecParseError):
            extract_json_object("")

    def test_unbalanced_braces_fail(self):
        with pytest.raises(SpecParseError):
            extract_json_object("} backwards {")

    def test_error_is_a_value_error_chained_from_last_attempt(self):
        with pytest.raises(ValueError) as exc_info:
            extract_json_object("no json here")
        assert exc_info.value.__cause__ is not None
