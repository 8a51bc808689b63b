from infrastructure import observability


def test_mask_string_hides_bearer_and_oauth_params():
    masked = observability._mask_string("Authorization: Bearer eyJ0eXAi.abc and /?code=xyz&state=123&route=/")
    assert "eyJ0eXAi" not in masked
    assert "xyz" not in masked
    assert "Bearer [REDACTED]" in masked
    assert "code=[REDACTED]" in masked
    assert "route=/" in masked


def test_scrub_event_masks_frame_vars_and_request():
    event = {
        "exception": {"values": [{"stacktrace": {"frames": [{"vars": {"token": "t" * 40, "page": 2}}]}}]},
        "request": {"headers": {"Authorization": "Bearer secret"}, "query_string": "code=abc"},
        "breadcrumbs": {"values": [{"message": "accessToken stored", "data": {"accessToken": "secret"}}]},
    }

    scrubbed = observability._scrub_sensitive_data(event, {})

    frame_vars = scrubbed["exception"]["values"][0]["stacktrace"]["frames"][0]["vars"]
    assert frame_vars == {"token": "[REDACTED]", "page": 2}
    assert scrubbed["request"]["headers"]["Authorization"] == "[REDACTED]"
    assert scrubbed["request"]["query_string"] == "code=[REDACTED]"
    assert scrubbed["breadcrumbs"]["values"][0]["data"]["accessToken"] == "[REDACTED]"
    assert scrubbed["breadcrumbs"]["values"][0]["message"] == "accessToken stored"
