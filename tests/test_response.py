"""
Unit Tests for the Response Codec
=================================
"""

import pytest

from yubiotp_core.exceptions import (
    RequestErrorKind,
    RequestRejectedError,
    ResponseErrorKind,
    ResponseParseError,
    ResponseVerificationError,
)
from yubiotp_core.response import ServiceResponse, parse_response, verify_response

from conftest import SECRET, build_body


class TestParseResponse:
    """Tests for reply body parsing."""

    def test_parses_all_fields(self):
        """Every known key populates its field."""
        body = (
            b"h=vjhFxZrNHB5CjI6vhuSeF2n46a8=\r\n"
            b"t=2024-01-01T00:00:00Z0123\r\n"
            b"otp=cccccc\r\n"
            b"nonce=ABC\r\n"
            b"sl=25\r\n"
            b"timestamp=7\r\n"
            b"sessioncounter=19\r\n"
            b"sessionuse=17\r\n"
            b"status=OK\r\n"
            b"\r\n"
        )

        response = parse_response(body)

        assert response == ServiceResponse(
            received_otp="cccccc",
            signature="vjhFxZrNHB5CjI6vhuSeF2n46a8=",
            received_nonce="ABC",
            session_counter="19",
            session_use="17",
            status="OK",
            sync_factor="25",
            request_timestamp="2024-01-01T00:00:00Z0123",
            activation_timestamp="7",
        )

    def test_unknown_field_with_value_fails(self):
        """Protocol drift is reported instead of ignored."""
        with pytest.raises(ResponseParseError) as exc_info:
            parse_response(b"status=OK\nfoo=bar\n")

        assert exc_info.value.key == "foo"
        assert exc_info.value.value == "bar"

    def test_unknown_field_without_value_is_tolerated(self):
        """Empty unknown keys and bare lines are skipped."""
        response = parse_response(b"status=OK\nfoo=\nbare line\n")

        assert response.status == "OK"

    def test_non_utf8_body_fails(self):
        """Undecodable bytes are a decode error."""
        with pytest.raises(ResponseParseError):
            parse_response(b"status=\xff\xfe")

    @pytest.mark.parametrize("body", [b"", b"\r\n\r\n"])
    def test_empty_body_fails(self, body):
        """A reply without content is a decode error."""
        with pytest.raises(ResponseParseError):
            parse_response(body)

    def test_canonical_string_order(self):
        """Signed fields are joined alphabetically without a leading delimiter."""
        response = parse_response(build_body())

        assert response.canonical_string() == (
            "nonce=ABC&otp=cccccc&sessioncounter=1&sessionuse=1"
            "&sl=100&status=OK&t=2024&timestamp=1"
        )


class TestVerifyResponse:
    """Tests for status mapping and signature verification."""

    @pytest.mark.parametrize("status,kind", [
        ("BAD_OTP", RequestErrorKind.INVALID_FORMAT),
        ("REPLAYED_OTP", RequestErrorKind.REPLAYED),
        ("REPLAYED_REQUEST", RequestErrorKind.REPLAYED),
        ("BAD_SIGNATURE", RequestErrorKind.BAD_SIGNATURE),
        ("MISSING_PARAMETER", RequestErrorKind.MISSING_PARAMETER),
        ("NO_SUCH_CLIENT", RequestErrorKind.CLIENT_DOES_NOT_EXIST),
        ("OPERATION_NOT_ALLOWED", RequestErrorKind.FORBIDDEN),
        ("NOT_ENOUGH_ANSWERS", RequestErrorKind.DEADLINE_EXCEEDED),
        ("BACKEND_ERROR", RequestErrorKind.BACKEND_ERROR),
        ("SOMETHING_NEW", RequestErrorKind.UNKNOWN_FAILURE),
        ("", RequestErrorKind.UNKNOWN_FAILURE),
    ])
    def test_status_mapping(self, status, kind):
        """Each non-OK status maps to its kind; the signature is not checked."""
        response = parse_response(build_body(status=status, signature="not-a-signature"))

        with pytest.raises(RequestRejectedError) as exc_info:
            verify_response(response, SECRET)

        assert exc_info.value.kind is kind
        assert exc_info.value == RequestRejectedError(kind)

    def test_ok_with_valid_signature(self):
        """A correctly signed OK reply verifies."""
        response = parse_response(build_body())

        assert verify_response(response, SECRET) is None

    def test_ok_with_wrong_signature(self):
        """A tampered signature is a response verification error."""
        response = parse_response(build_body(signature="AAAAAAAAAAAAAAAAAAAAAAAAAAA="))

        with pytest.raises(ResponseVerificationError) as exc_info:
            verify_response(response, SECRET)

        assert exc_info.value.kind is ResponseErrorKind.BAD_SIGNATURE

    def test_ok_with_wrong_secret(self):
        """A reply signed with another key does not verify."""
        response = parse_response(build_body(secret=b"another key"))

        with pytest.raises(ResponseVerificationError):
            verify_response(response, SECRET)

    def test_tampered_field(self):
        """Changing a signed field after signing breaks verification."""
        response = parse_response(build_body())
        response.session_counter = "2"

        with pytest.raises(ResponseVerificationError):
            verify_response(response, SECRET)
