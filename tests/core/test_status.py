"""Tests for proofroute/core/status.py - status tag resolution."""

from http import HTTPStatus

import pytest
from hypothesis import given
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st

from proofroute.core.exceptions import SchemaError, UnknownStatusCodeError
from proofroute.core.status import resolve_status


class TestResolveStatus:
    """Unit tests for resolve_status."""

    @pytest.mark.parametrize(
        "tag",
        ["BadRequest", "BAD_REQUEST", "bad_request", "badrequest", "Bad-Request"],
    )
    def test_name_spellings(self, tag):
        """Test that common spellings of a status name resolve alike."""
        assert resolve_status(tag) is HTTPStatus.BAD_REQUEST

    def test_teapot(self):
        """Test that the teapot status is known."""
        assert resolve_status("ImATeapot") is HTTPStatus.IM_A_TEAPOT

    def test_integer(self):
        """Test that integer codes resolve."""
        assert resolve_status(401) is HTTPStatus.UNAUTHORIZED

    def test_http_status_passthrough(self):
        """Test that HTTPStatus members are returned unchanged."""
        assert resolve_status(HTTPStatus.NOT_FOUND) is HTTPStatus.NOT_FOUND

    def test_unknown_name(self):
        """Test that unknown names raise UnknownStatusCodeError."""
        with pytest.raises(UnknownStatusCodeError, match="NotAStatus"):
            resolve_status("NotAStatus")

    def test_unknown_integer(self):
        """Test that unknown codes raise UnknownStatusCodeError."""
        with pytest.raises(UnknownStatusCodeError):
            resolve_status(799)

    def test_bool_rejected(self):
        """Test that booleans are not taken for integers."""
        with pytest.raises(UnknownStatusCodeError):
            resolve_status(True)

    def test_wrong_type(self):
        """Test that other types are rejected as schema errors."""
        with pytest.raises(SchemaError):
            resolve_status(4.0)  # type: ignore[arg-type]

    @hypothesis_settings(max_examples=50)
    @given(status=st.sampled_from(list(HTTPStatus)))
    def test_every_status_resolves_by_name_and_code(self, status):
        """Property: every HTTPStatus resolves from its name and its code."""
        assert resolve_status(status.name) is status
        assert resolve_status(status.value) is status
