"""Tests for character profile models and the in-memory store."""

import threading

import pytest

from app.core.exceptions import ProfileNotFoundError
from app.services.profile_store import CharacterDetail, CharacterProfile, ProfileStore

from tests.helpers import make_detail


def _store_with(*names: str) -> ProfileStore:
    store = ProfileStore()
    store.reset([CharacterProfile.placeholder(name, idx) for idx, name in enumerate(names)])
    return store


class TestCharacterProfile:
    def test_placeholder_is_empty_and_incomplete(self):
        profile = CharacterProfile.placeholder("Alice", 0)
        assert profile.name == "Alice"
        assert profile.id.startswith("char-0-")
        assert profile.gender_age == ""
        assert profile.clothing_versions == []
        assert profile.personality_keywords == []
        assert profile.ai_prompt == ""
        assert not profile.is_complete

    def test_placeholder_ids_are_unique(self):
        ids = {CharacterProfile.placeholder("Same", 0).id for _ in range(50)}
        assert len(ids) == 50

    def test_with_detail_keeps_id(self):
        profile = CharacterProfile.placeholder("Alice", 3)
        filled = profile.with_detail(make_detail("Alice"))
        assert filled.id == profile.id
        assert filled.is_complete
        assert filled.appearance.hair == "long black hair tied with a red ribbon"

    def test_serializes_with_camel_case_keys(self):
        profile = CharacterProfile.placeholder("Alice", 0).with_detail(make_detail("Alice"))
        payload = profile.model_dump(by_alias=True)
        assert set(payload) == {
            "id",
            "name",
            "genderAge",
            "appearance",
            "clothingVersions",
            "personalityKeywords",
            "aiPrompt",
        }
        assert set(payload["appearance"]) == {"faceAndSkin", "features", "hair", "bodyType", "clothing"}

    def test_detail_requires_every_top_level_key(self):
        with pytest.raises(ValueError):
            CharacterDetail.model_validate({"name": "Alice", "genderAge": "24"})


class TestProfileStore:
    def test_reset_keeps_order(self):
        store = _store_with("A", "B", "C")
        assert [p.name for p in store.list_profiles()] == ["A", "B", "C"]
        assert len(store) == 3

    def test_reset_without_profiles_clears(self):
        store = _store_with("A")
        store.reset()
        assert store.list_profiles() == []

    def test_list_returns_copies(self):
        store = _store_with("A")
        snapshot = store.list_profiles()
        snapshot[0].name = "mutated"
        assert store.list_profiles()[0].name == "A"

    def test_merge_detail_at_position(self):
        store = _store_with("A", "B")
        before = store.list_profiles()

        store.merge_detail_at(1, make_detail("B"))

        after = store.list_profiles()
        assert after[0] == before[0]
        assert after[1].id == before[1].id
        assert after[1].is_complete
        assert store.completed_count() == 1

    def test_replace_keeps_stored_id(self):
        store = _store_with("A", "B")
        target = store.list_profiles()[0]
        incoming = CharacterProfile(id="something-else", **make_detail("A2").model_dump())

        updated = store.replace(target.id, incoming)

        assert updated.id == target.id
        assert store.get(target.id).name == "A2"
        assert [p.id for p in store.list_profiles()][0] == target.id

    def test_replace_unknown_id_raises(self):
        store = _store_with("A")
        with pytest.raises(ProfileNotFoundError) as exc_info:
            store.replace("missing", CharacterProfile.placeholder("X", 0))
        assert exc_info.value.detail == "Character profile not found"

    def test_get_unknown_id_raises(self):
        with pytest.raises(ProfileNotFoundError):
            ProfileStore().get("missing")

    def test_concurrent_writes_leave_store_consistent(self):
        store = _store_with("A", "B")
        target = store.list_profiles()[1]

        def edit():
            for i in range(200):
                store.replace(target.id, target.model_copy(update={"ai_prompt": f"edit {i}"}))

        def merge():
            for _ in range(200):
                store.merge_detail_at(1, make_detail("B"))

        threads = [threading.Thread(target=edit), threading.Thread(target=merge)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        records = store.list_profiles()
        assert len(records) == 2
        assert records[1].id == target.id
        assert records[1].ai_prompt in {"edit 199", make_detail("B").ai_prompt}
