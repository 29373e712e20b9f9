import pytest

from codegate.llm_parsing import first_fenced_block, normalize


def test_fenced_block_with_language_tag():
    assert normalize("```js\nconsole.log(1)\n```") == {"code": "console.log(1)"}


def test_plain_text_passes_through():
    assert normalize("no fences here") == {"code": "no fences here"}


def test_stray_backticks_are_stripped():
    assert normalize("  ```print('hi')  ") == {"code": "print('hi')"}


def test_only_first_block_is_kept():
    raw = "Intro\n```python\na = 1\n```\nmiddle\n```python\nb = 2\n```"
    assert normalize(raw) == {"code": "a = 1"}


def test_fence_without_language_tag():
    assert normalize("``` x = 1```") == {"code": "x = 1"}


def test_surrounding_prose_is_dropped():
    raw = "Here you go:\n```\nSELECT 1;\n```\nHope that helps"
    assert normalize(raw)["code"] == "SELECT 1;"


def test_empty_block_falls_back_to_stripping():
    # Empty body: the language tag is all that is left after removing fences
    assert normalize("```js\n```") == {"code": "js"}


@pytest.mark.parametrize("raw", ["", None, "   \n  "])
def test_empty_input_gives_empty_code(raw):
    assert normalize(raw) == {"code": ""}


@pytest.mark.parametrize("raw", ["no fences here", "  int main() { return 0; }\n", "a `b` c"])
def test_idempotent_on_clean_input(raw):
    once = normalize(raw)
    assert normalize(once["code"]) == once


def test_first_fenced_block_none_when_unmatched():
    assert first_fenced_block("no fences") is None
    assert first_fenced_block("```only one fence") is None
