import jwt
import pytest

from canteen.auth import create_access_token, decode_access_token, hash_password, verify_password


def test_password_hash_round_trip():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_token_carries_user_and_email():
    claims = decode_access_token(create_access_token(7, "bob@campus.edu"))
    assert claims["sub"] == "7"
    assert claims["email"] == "bob@campus.edu"
    assert "role" not in claims


def test_expired_token_is_rejected():
    token = create_access_token(7, "bob@campus.edu", expires_delta=-10)
    with pytest.raises(jwt.PyJWTError):
        decode_access_token(token)


def test_password_login_flow(client):
    r = client.post("/api/auth/signup", json={"email": "pw@campus.edu", "password": "secret123"})
    assert r.status_code == 201

    # login with wrong password
    r2 = client.post("/api/auth/login", json={"email": "pw@campus.edu", "password": "wrong"})
    assert r2.status_code == 401

    # login with correct password
    r3 = client.post("/api/auth/login", json={"email": "PW@campus.edu", "password": "secret123"})
    assert r3.status_code == 200
    assert "access_token" in r3.json()
