from algolens.proxy.prompts import (
    INTERPRETER_PROMPT,
    RESPONSE_KEYS,
    build_image_data_uri,
)


def test_prompt_names_every_response_key():
    for key in RESPONSE_KEYS:
        assert f'"{key}"' in INTERPRETER_PROMPT
    assert "valid JSON ONLY" in INTERPRETER_PROMPT


def test_prompt_states_receipt_total_entry():
    assert "'TOTAL' entry at the end" in INTERPRETER_PROMPT


def test_data_uri_keeps_payload_untouched():
    assert build_image_data_uri("QUJD\n") == "data:image/jpeg;base64,QUJD\n"
