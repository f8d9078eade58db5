from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from sqlalchemy import update

from authentication.application.rules import CurrentUserRule
from authentication.infrastructure.services import JWTTokenService
from users.domain.entities import UserRole
from users.infrastructure.models import User as UserModel
from users.infrastructure.repositories import UserRepository


@pytest.fixture
def token_service(settings):
    return JWTTokenService(settings)


async def test_token_round_trip(session, seed, token_service):
    admin = await seed.admin("Ada Admin")

    token = await token_service.create_access_token(admin)
    token_data = await token_service.decode_access_token(token)

    assert token_data.user_id == admin.id
    assert token_data.role == UserRole.ADMIN
    assert token_data.expires_at > datetime.now(timezone.utc)


@pytest.mark.parametrize(
    "claims",
    [
        {"id": 1, "type": "refresh"},
        {"role": "Engineer", "type": "access"},
        {"id": 1, "type": "access", "role": "Supervisor"},
    ],
)
async def test_unusable_claims_are_rejected(settings, token_service, claims):
    claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)

    with pytest.raises(HTTPException) as exc_info:
        await token_service.decode_access_token(token)

    assert exc_info.value.status_code == 401


async def test_expired_and_forged_tokens_are_rejected(settings, token_service):
    expired = jwt.encode(
        {"id": 1, "type": "access", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.secret_key,
        algorithm=settings.algorithm,
    )
    forged = jwt.encode(
        {"id": 1, "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "not-the-secret",
        algorithm=settings.algorithm,
    )

    for token in (expired, forged, "garbage"):
        with pytest.raises(HTTPException):
            await token_service.decode_access_token(token)


async def test_deactivated_user_is_rejected(session, seed, token_service):
    user = await seed.user("Dee Deactivated", is_active=False)
    token = await token_service.create_access_token(user)

    rule = CurrentUserRule(
        token=token, token_service=token_service, user_repository=UserRepository(session)
    )
    with pytest.raises(HTTPException) as exc_info:
        await rule.execute()

    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_invalid_bearer_token_over_http(client):
    response = client.get(
        "/notifications/", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


async def test_deactivation_applies_despite_cached_user(
    session, seed, token_service
):
    user = await seed.user("Carl Cached")
    repository = UserRepository(session)
    token = await token_service.create_access_token(user)
    assert (await repository.get(user.id)).is_active

    await session.execute(
        update(UserModel).where(UserModel.id == user.id).values(is_active=False)
    )
    await session.commit()

    assert (await repository.get(user.id)).is_active
    rule = CurrentUserRule(
        token=token, token_service=token_service, user_repository=repository
    )
    with pytest.raises(HTTPException) as exc_info:
        await rule.execute()

    assert exc_info.value.status_code == 401


async def test_directory_timestamps_are_utc_aware(session, seed):
    user = await seed.user("Tim Stamp")

    stored = await UserRepository(session).get_fresh(user.id)

    assert user.created_at.tzinfo is not None
    assert stored.created_at.utcoffset() == timedelta(0)
