"""Tests for JWT access tokens."""

import jwt
from datetime import datetime, timedelta

from carshopwatch.auth import jwt as auth_jwt


def test_token_round_trip_carries_id_and_role():
    token = auth_jwt.create_access_token(42, "admin")
    
    payload = auth_jwt.decode_access_token(token)
    
    assert payload["sub"] == "42"
    assert payload["role"] == "admin"
    assert auth_jwt.get_user_id_from_token(token) == 42


def test_expired_token_is_rejected():
    token = jwt.encode(
        {"sub": "42", "role": "user", "exp": datetime.utcnow() - timedelta(minutes=1)},
        auth_jwt.JWT_SECRET_KEY,
        algorithm=auth_jwt.JWT_ALGORITHM,
    )
    
    assert auth_jwt.decode_access_token(token) is None
    assert auth_jwt.get_user_id_from_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "42", "role": "admin"}, "not-the-secret-key-at-all-0123456789", algorithm="HS256")
    
    assert auth_jwt.get_user_id_from_token(token) is None


def test_garbage_token_is_rejected():
    assert auth_jwt.get_user_id_from_token("not.a.jwt") is None


def test_non_integer_subject_is_rejected():
    token = jwt.encode({"sub": "google-oauth-id"}, auth_jwt.JWT_SECRET_KEY, algorithm=auth_jwt.JWT_ALGORITHM)
    
    assert auth_jwt.decode_access_token(token) is not None
    assert auth_jwt.get_user_id_from_token(token) is None
