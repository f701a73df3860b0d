import google.auth.exceptions
import pytest

import auth_utils
from auth_utils import IdentityVerifier, extract_bearer_token
from errors import Unauthenticated, UpstreamUnavailable


@pytest.fixture
def verifier():
    return IdentityVerifier('music-catalog', request=object())


def test_verify_token_returns_identity(verifier, monkeypatch):
    calls = []

    def fake_verify(token, request, audience=None):
        calls.append((token, audience))
        return {'sub': 'uid-1', 'email': 'a@example.com', 'name': 'Ann', 'phone_number': '+15550100'}

    monkeypatch.setattr(auth_utils.google_id_token, 'verify_firebase_token', fake_verify)

    identity = verifier.verify_token('good-token')

    assert calls == [('good-token', 'music-catalog')]
    assert identity.subject_id == 'uid-1'
    assert identity.email == 'a@example.com'
    assert identity.display_name == 'Ann'
    assert identity.phone_number == '+15550100'


def test_invalid_token(verifier, monkeypatch):
    def fake_verify(token, request, audience=None):
        raise ValueError('Token expired')

    monkeypatch.setattr(auth_utils.google_id_token, 'verify_firebase_token', fake_verify)

    with pytest.raises(Unauthenticated):
        verifier.verify_token('expired')


def test_certificate_fetch_failure(verifier, monkeypatch):
    def fake_verify(token, request, audience=None):
        raise google.auth.exceptions.TransportError('no route')

    monkeypatch.setattr(auth_utils.google_id_token, 'verify_firebase_token', fake_verify)

    with pytest.raises(UpstreamUnavailable):
        verifier.verify_token('token')


def test_missing_token_or_project(verifier):
    with pytest.raises(Unauthenticated):
        verifier.verify_token('')
    with pytest.raises(Unauthenticated):
        IdentityVerifier('', request=object()).verify_token('token')


def test_extract_bearer_token():
    assert extract_bearer_token('Bearer abc.def') == 'abc.def'
    assert extract_bearer_token('bearer abc') == 'abc'
    for header in [None, '', 'abc', 'Basic abc', 'Bearer ']:
        with pytest.raises(Unauthenticated):
            extract_bearer_token(header)
