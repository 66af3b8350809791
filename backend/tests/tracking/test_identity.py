"""
TeamClock - Identity Resolver Tests
===================================
"""

from uuid import uuid4

import pytest

from teamclock.core.config import settings
from teamclock.core.exceptions import NotFoundError, ValidationFailedError
from teamclock.core.tracking import IdentityResolver


@pytest.fixture
def identity(uow) -> IdentityResolver:
    return IdentityResolver(uow)


async def test_unknown_identity_resolves_to_none(identity):
    assert await identity.resolve("idp|nobody") is None


async def test_first_submission_creates_user(identity):
    user = await identity.upsert_profile("idp|alice", name="Alice", role="Engineer")

    assert user.name == "Alice"
    assert user.role == "Engineer"
    assert user.avatar_ref == settings.DEFAULT_AVATAR_REF
    assert user.company_id is None
    assert await identity.resolve("idp|alice") == user


async def test_update_keeps_id_and_avatar(identity):
    created = await identity.upsert_profile(
        "idp|alice", name="Alice", avatar_ref="https://cdn.example.com/a.png"
    )

    updated = await identity.upsert_profile("idp|alice", name="Alice B.", role="Lead")

    assert updated.id == created.id
    assert updated.name == "Alice B."
    assert updated.role == "Lead"
    assert updated.avatar_ref == "https://cdn.example.com/a.png"


async def test_update_replaces_avatar_when_given(identity):
    await identity.upsert_profile("idp|alice", name="Alice")

    updated = await identity.upsert_profile(
        "idp|alice", name="Alice", avatar_ref="https://cdn.example.com/new.png"
    )

    assert updated.avatar_ref == "https://cdn.example.com/new.png"


async def test_blank_name_rejected(identity, store):
    with pytest.raises(ValidationFailedError):
        await identity.upsert_profile("idp|alice", name="  ")
    assert store.users == {}


async def test_get_user(identity):
    user = await identity.upsert_profile("idp|alice", name="Alice")

    assert await identity.get_user(user.id) == user
    with pytest.raises(NotFoundError):
        await identity.get_user(uuid4())
