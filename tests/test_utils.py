import pytest

from app.utils import default_username, extract_json_payload, generate_id, title_seed


def test_extract_json_payload_from_markdown_array():
    payload = """
    Here are your categories:
    ```json
    [{"title": "Conferenze", "movies": []}]
    ```
    """
    assert extract_json_payload(payload) == [{"title": "Conferenze", "movies": []}]


def test_extract_json_payload_from_bare_object():
    assert extract_json_payload('noise {"movies": []} trailing') == {"movies": []}


def test_extract_json_payload_rejects_prose():
    with pytest.raises(ValueError):
        extract_json_payload("no structured content here")


def test_default_username_uses_local_part():
    assert default_username("a@x.com") == "a"
    assert default_username("admin") == "admin"


def test_title_seed_strips_spaces():
    assert title_seed("Sotto Roma") == "SottoRoma"


def test_generate_id_is_prefixed_and_unique():
    first = generate_id("custom")
    second = generate_id("custom")
    assert first.startswith("custom-")
    assert first != second
