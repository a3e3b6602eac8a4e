"""
Character profile models and the in-memory profile store.

The store keeps profiles in identification order. Position in the list is
what ties a profile to the sequencer's cursor; the id is what ties it to
manual edits. Every write is a wholesale replacement under a lock, so
concurrent edits and automated merges resolve as last-write-wins.
"""

from __future__ import annotations

import threading
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.exceptions import ProfileNotFoundError


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Appearance(_CamelModel):
    face_and_skin: str = ""
    features: str = ""
    hair: str = ""
    body_type: str = ""
    clothing: str = ""


class ClothingVersion(_CamelModel):
    title: str = ""
    style: str = ""
    main: str = ""
    accessories: str = ""
    shoes: str = ""


class CharacterDetail(_CamelModel):
    """Everything the detail prompt returns for one character."""

    name: str
    gender_age: str
    appearance: Appearance
    clothing_versions: list[ClothingVersion]
    personality_keywords: list[str]
    ai_prompt: str


class CharacterProfile(CharacterDetail):
    id: str = Field(min_length=1)

    @classmethod
    def placeholder(cls, name: str, index: int) -> "CharacterProfile":
        return cls(
            id=f"char-{index}-{uuid.uuid4().hex[:12]}",
            name=name,
            gender_age="",
            appearance=Appearance(),
            clothing_versions=[],
            personality_keywords=[],
            ai_prompt="",
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.gender_age)

    def with_detail(self, detail: CharacterDetail) -> "CharacterProfile":
        """Return a copy whose detail fields all come from ``detail``."""
        return CharacterProfile(id=self.id, **detail.model_dump())


class ProfileStore:
    def __init__(self) -> None:
        self._profiles: list[CharacterProfile] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def reset(self, profiles: list[CharacterProfile] | None = None) -> None:
        """Replace the whole collection (empty when ``profiles`` is None)."""
        with self._lock:
            self._profiles = [p.model_copy(deep=True) for p in profiles or []]

    def list_profiles(self) -> list[CharacterProfile]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._profiles]

    def get(self, profile_id: str) -> CharacterProfile:
        with self._lock:
            return self._profiles[self._index_of(profile_id)].model_copy(deep=True)

    def completed_count(self) -> int:
        with self._lock:
            return sum(1 for p in self._profiles if p.is_complete)

    def replace(self, profile_id: str, profile: CharacterProfile) -> CharacterProfile:
        """Wholesale-replace the profile with ``profile_id``; the stored id is kept."""
        with self._lock:
            idx = self._index_of(profile_id)
            updated = profile.model_copy(update={"id": profile_id}, deep=True)
            self._profiles[idx] = updated
            return updated.model_copy(deep=True)

    def merge_detail_at(self, index: int, detail: CharacterDetail) -> CharacterProfile:
        """Fill the detail fields of the profile at list position ``index``."""
        with self._lock:
            updated = self._profiles[index].with_detail(detail)
            self._profiles[index] = updated
            return updated.model_copy(deep=True)

    def _index_of(self, profile_id: str) -> int:
        for idx, profile in enumerate(self._profiles):
            if profile.id == profile_id:
                return idx
        raise ProfileNotFoundError(profile_id)
