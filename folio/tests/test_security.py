"""Tests for sanitization, validation, spam heuristics and client IP lookup."""

import pytest
from starlette.requests import Request

from folio.services.security import (
    SpamDetector,
    check_spam_patterns,
    get_client_ip,
    get_security_headers,
    sanitize_input,
    validate_comment_form,
    validate_contact_form,
    validate_email,
    validate_origin,
    validate_record_id,
)


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestSanitizeInput:
    def test_removes_script_blocks(self):
        assert sanitize_input("hi<script>alert(1)</script> there") == "hi there"

    def test_leading_script_block_removed_text_kept(self):
        result = sanitize_input("<script>alert(1)</script>hi")
        assert "<script" not in result
        assert result == "hi"

    def test_simple_text_passes_through(self):
        assert sanitize_input("hello world") == "hello world"

    def test_removes_iframe_and_form_blocks(self):
        text = 'a<iframe src="x"></iframe>b<form action="/x"><input></form>c'
        assert sanitize_input(text) == "abc"

    def test_strips_javascript_protocol_and_handlers(self):
        result = sanitize_input('<a href="javascript:go()" onclick="x()">link</a>')
        assert "javascript:" not in result
        assert "onclick" not in result
        assert result.startswith("&lt;a")

    def test_encodes_special_characters(self):
        assert sanitize_input("Tom & \"Jerry\" 'cat'") == (
            "Tom &amp; &quot;Jerry&quot; &#x27;cat&#x27;"
        )

    def test_plain_text_unchanged_apart_from_trim(self):
        assert sanitize_input("  Nice post, thanks  ") == "Nice post, thanks"

    def test_non_string_returns_empty(self):
        assert sanitize_input(None) == ""  # type: ignore[arg-type]


class TestValidators:
    @pytest.mark.parametrize(
        "email", ["jane@example.com", "first.last+tag@sub.example.co"]
    )
    def test_valid_emails(self, email):
        assert validate_email(email)

    @pytest.mark.parametrize("email", ["", "plainaddress", "a@", "@example.com", "a b@x.com"])
    def test_invalid_emails(self, email):
        assert not validate_email(email)

    def test_record_id(self):
        assert validate_record_id("c" + "a1" * 12)
        assert not validate_record_id("x" + "a1" * 12)
        assert not validate_record_id("c" + "A1" * 12)
        assert not validate_record_id("c123")


class TestSpamDetection:
    @pytest.mark.parametrize(
        "text",
        [
            "see http://a.io and http://b.io and http://c.io",
            "THIS IS REALLYLOUD text",
            "soooooooooooooo good",
            "Click here for a prize",
            "what!!!!!",
            "&lt;script&gt;alert(1)&lt;/script&gt;",
        ],
    )
    def test_flags_spam(self, text):
        assert check_spam_patterns(text)

    def test_normal_comment_passes(self):
        assert not check_spam_patterns(
            "Great article, I learned a lot about async Python. See https://docs.python.org"
        )

    def test_empty_text_is_not_spam(self):
        assert not check_spam_patterns("")

    def test_custom_patterns(self):
        detector = SpamDetector([r"crypto"])
        assert detector("cheap crypto here")
        assert not detector("CLICK HERE NOW!!!!!")


class TestClientIp:
    def test_cloudflare_header_wins(self):
        req = _request({"cf-connecting-ip": "1.1.1.1", "x-forwarded-for": "2.2.2.2"})
        assert get_client_ip(req) == "1.1.1.1"

    def test_aws_header_before_forwarded_for(self):
        req = _request(
            {"x-amzn-forwarded-for": "3.3.3.3, 10.0.0.1", "x-forwarded-for": "2.2.2.2"}
        )
        assert get_client_ip(req) == "3.3.3.3"

    def test_first_forwarded_for_entry(self):
        req = _request({"x-forwarded-for": " 4.4.4.4 , 10.0.0.1"})
        assert get_client_ip(req) == "4.4.4.4"

    def test_real_ip_fallback(self):
        assert get_client_ip(_request({"x-real-ip": "5.5.5.5"})) == "5.5.5.5"

    def test_unknown_without_headers(self):
        assert get_client_ip(_request({})) == "unknown"


class TestOrigin:
    def test_allow_list(self):
        assert validate_origin("https://example.dev", ["https://example.dev"])
        assert not validate_origin("https://evil.dev", ["https://example.dev"])
        assert not validate_origin(None, ["https://example.dev"])

    def test_localhost_only_in_development(self):
        assert validate_origin("http://localhost:3000", [], "development")
        assert not validate_origin("http://localhost:3000", [], "production")


def test_security_headers_values():
    headers = get_security_headers()
    assert headers["X-Frame-Options"] == "DENY"
    assert headers["X-Content-Type-Options"] == "nosniff"
    assert headers["Referrer-Policy"] == "origin-when-cross-origin"
    assert headers["Permissions-Policy"] == "camera=(), microphone=(), geolocation=()"


class TestCommentForm:
    def _form(self, **overrides):
        data = {
            "postId": "c" + "a1" * 12,
            "author": "Jane Doe",
            "email": "jane@example.com",
            "content": "Really enjoyed this one.",
        }
        data.update(overrides)
        return data

    def test_valid_form(self):
        assert validate_comment_form(self._form()) == []

    def test_all_violations_reported_together(self):
        errors = validate_comment_form(
            self._form(author="J", email="nope", content="short")
        )
        assert errors == [
            "Author name must be between 2-50 characters",
            "Please enter a valid email address",
            "Comment must be between 10-1000 characters",
        ]

    def test_lengths_measured_after_trim(self):
        errors = validate_comment_form(self._form(content="   123456789   "))
        assert errors == ["Comment must be between 10-1000 characters"]

    def test_markup_in_author_rejected(self):
        errors = validate_comment_form(self._form(author="<b>Jane</b>"))
        assert errors == ["Author name contains invalid characters"]

    def test_missing_fields(self):
        errors = validate_comment_form({})
        assert "Post ID is required" in errors
        assert "Author name is required" in errors
        assert "Email address is required" in errors
        assert "Comment content is required" in errors


class TestContactForm:
    def test_valid(self):
        data = {
            "name": "Jane",
            "email": "jane@example.com",
            "subject": "Hello",
            "message": "I would like to work together.",
        }
        assert validate_contact_form(data) == []

    def test_violations(self):
        errors = validate_contact_form(
            {"name": "J", "email": "x", "subject": "Hi", "message": "short"}
        )
        assert errors == [
            "Name must be between 2-100 characters",
            "Please enter a valid email address",
            "Subject must be between 3-200 characters",
            "Message must be between 10-2000 characters",
        ]
