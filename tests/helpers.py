"""Shared test doubles for the analysis tests."""

import asyncio
import threading
import time

from app.core.exceptions import CharacterDetailError
from app.services.profile_store import Appearance, CharacterDetail, ClothingVersion


def make_detail(name: str) -> CharacterDetail:
    return CharacterDetail(
        name=name,
        gender_age=f"{name}, 24, female",
        appearance=Appearance(
            face_and_skin="oval face, fair skin",
            features="narrow eyes, a scar over the left brow",
            hair="long black hair tied with a red ribbon",
            body_type="slender",
            clothing="dark blue travelling cloak",
        ),
        clothing_versions=[
            ClothingVersion(
                title="default",
                style="wuxia",
                main="blue robe",
                accessories="jade pendant",
                shoes="cloth boots",
            )
        ],
        personality_keywords=["calm", "stubborn", "loyal"],
        ai_prompt=f"{name}, long black hair, blue robe, plain white background",
    )


class FakeGenerator:
    """Stands in for CharacterGenerationService.

    ``failures`` holds zero-based detail call indices that raise. When
    ``block_on`` names a character, its detail call waits for ``gate``.
    """

    def __init__(self, names=None, failures=(), block_on=()):
        self.names = list(names or [])
        self.failures = set(failures)
        self.block_on = set(block_on)
        self.gate = threading.Event()
        self.identify_calls: list[str] = []
        self.detail_calls: list[str] = []

    def identify_characters(self, text: str) -> list[str]:
        self.identify_calls.append(text)
        return list(self.names)

    def generate_character_detail(self, name: str, text: str) -> CharacterDetail:
        call_index = len(self.detail_calls)
        self.detail_calls.append(name)
        if name in self.block_on:
            self.gate.wait(timeout=5)
        if call_index in self.failures:
            raise CharacterDetailError(name, "response does not match profile schema")
        return make_detail(name)


async def wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
