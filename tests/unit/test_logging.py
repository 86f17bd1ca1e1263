from scout.infrastructure.observability.logging import redact_raw_text


def test_raw_text_is_reduced_to_length():
    event = {"event": "Delivery created", "final_message": "あいう", "template_type": "A"}

    result = redact_raw_text(None, "info", event)

    assert result == {"event": "Delivery created", "final_message": "<3 chars>", "template_type": "A"}


def test_non_string_values_untouched():
    event = {"event": "x", "paste_text": None}

    assert redact_raw_text(None, "info", event) == {"event": "x", "paste_text": None}
