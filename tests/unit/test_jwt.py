"""Tests for JWT utilities."""
from datetime import timedelta

import pytest
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from tiffinos.lib.jwt import create_access_token, get_vendor_from_token, verify_token


VENDOR_ID = "123e4567-e89b-12d3-a456-426614174000"
MOBILE = "9876543210"


@pytest.mark.unit
def test_create_and_verify_token():
    """Test creating and verifying a valid token."""
    token = create_access_token(VENDOR_ID, MOBILE)

    assert isinstance(token, str)
    assert len(token) > 0

    payload = verify_token(token)
    assert payload["sub"] == VENDOR_ID
    assert payload["mobile_number"] == MOBILE
    assert "iat" in payload
    assert "exp" in payload


@pytest.mark.unit
def test_get_vendor_from_token():
    """Test extracting vendor info from token."""
    token = create_access_token(VENDOR_ID, MOBILE)

    extracted_id, extracted_mobile = get_vendor_from_token(token)
    assert extracted_id == VENDOR_ID
    assert extracted_mobile == MOBILE


@pytest.mark.unit
def test_expired_token():
    """Tokens whose expiry is in the past are rejected."""
    token = create_access_token(VENDOR_ID, MOBILE, expires_delta=timedelta(seconds=-10))

    with pytest.raises(ExpiredSignatureError):
        verify_token(token)


@pytest.mark.unit
def test_invalid_token():
    """Test that malformed tokens are rejected."""
    with pytest.raises(InvalidTokenError):
        verify_token("not.a.valid.token")


@pytest.mark.unit
def test_tampered_token():
    """Test that tampered tokens are rejected."""
    token = create_access_token(VENDOR_ID, MOBILE)
    tampered_token = token[:-5] + ("AAAAA" if not token.endswith("AAAAA") else "BBBBB")

    with pytest.raises(InvalidTokenError):
        verify_token(tampered_token)


@pytest.mark.unit
def test_custom_expiry():
    """Test creating token with custom expiration time."""
    token = create_access_token(VENDOR_ID, MOBILE, expires_delta=timedelta(hours=1))
    payload = verify_token(token)

    assert payload["exp"] - payload["iat"] == 3600
