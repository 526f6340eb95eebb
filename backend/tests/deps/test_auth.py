from datetime import timedelta

import pytest
from fastapi import HTTPException
from stays.config import Settings
from stays.deps import get_current_user_id
from stays.utils.auth import create_access_token, parse_bearer

SETTINGS = Settings(auth_secret="testsecret")


@pytest.mark.asyncio
async def test_get_current_user_id_accepts_valid_token() -> None:
    token = create_access_token(user_id=123, secret=SETTINGS.auth_secret, algorithm=SETTINGS.auth_algorithm)
    result = await get_current_user_id(authorization=f"Bearer {token}", settings=SETTINGS)
    assert result == 123


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_missing_header() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization=None, settings=SETTINGS)
    assert excinfo.value.status_code == 401
    assert excinfo.value.headers == {"WWW-Authenticate": "Bearer"}


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_expired_token() -> None:
    token = create_access_token(
        user_id=1,
        secret=SETTINGS.auth_secret,
        algorithm=SETTINGS.auth_algorithm,
        expires_delta=timedelta(seconds=-1),
    )
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization=f"Bearer {token}", settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_foreign_signature() -> None:
    token = create_access_token(user_id=1, secret="other-secret")
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization=f"Bearer {token}", settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
        (None, None),
    ],
)
def test_parse_bearer(header: str | None, expected: str | None) -> None:
    assert parse_bearer(header) == expected
