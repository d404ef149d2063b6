"""Birth profile persistence.

A profile is stored whole under ``profile:{user}``. There is no partial
update: saving replaces the previous value, and every snapshot cached
against the old profile stops matching because ``profile_id`` changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from energy_today.schemas import BirthProfile, parse_model
from energy_today.store import get_json, key_for, set_json

if TYPE_CHECKING:
    from energy_today.store import KeyValueStore


def profile_key(user_id: str) -> str:
    return key_for("profile", user_id)


class ProfileRepository:
    def __init__(self, store: KeyValueStore, user_id: str = "default") -> None:
        self.store = store
        self.key = profile_key(user_id)

    async def get(self) -> BirthProfile | None:
        raw = await get_json(self.store, self.key)
        if raw is None:
            return None
        return parse_model(BirthProfile, raw)

    async def save(self, profile: BirthProfile | dict[str, Any]) -> BirthProfile:
        """Validate and store ``profile``, replacing any previous one."""
        if not isinstance(profile, BirthProfile):
            profile = parse_model(BirthProfile, profile)
        await set_json(self.store, self.key, profile.model_dump(mode="json"))
        return profile

    async def delete(self) -> None:
        await self.store.remove(self.key)
