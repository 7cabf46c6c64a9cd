"""Tests for recommender access tokens."""

from datetime import datetime, timedelta

from scholarship_app.services.tokens import TOKEN_ALPHABET, TOKEN_LENGTH, generate_token, token_expiry


def test_alphabet_has_at_least_62_symbols():
    assert len(set(TOKEN_ALPHABET)) >= 62


def test_token_is_32_alphanumeric_characters():
    token = generate_token()
    assert len(token) == TOKEN_LENGTH == 32
    assert all(ch in TOKEN_ALPHABET for ch in token)


def test_tokens_do_not_repeat():
    tokens = {generate_token() for _ in range(1000)}
    assert len(tokens) == 1000


def test_expiry_defaults_to_configured_window():
    issued = datetime(2025, 1, 1, 12, 0, 0)
    assert token_expiry(issued) == issued + timedelta(days=30)


def test_expiry_with_explicit_days():
    issued = datetime(2025, 1, 1)
    assert token_expiry(issued, days=7) == datetime(2025, 1, 8)
