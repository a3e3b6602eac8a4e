from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from app.api.deps import SequencerDep
from app.services.profile_store import CharacterDetail, CharacterProfile


router = APIRouter(tags=["characters"])


@router.get("/characters", response_model=list[CharacterProfile])
async def list_characters(sequencer=SequencerDep):
    return sequencer.store.list_profiles()


@router.get("/characters/{profile_id}", response_model=CharacterProfile)
async def get_character(profile_id: str, sequencer=SequencerDep):
    return sequencer.store.get(profile_id)


@router.put("/characters/{profile_id}", response_model=CharacterProfile)
async def update_character(profile_id: str, payload: CharacterDetail, sequencer=SequencerDep):
    profile = CharacterProfile(id=profile_id, **payload.model_dump())
    return sequencer.edit_record(profile_id, profile)


@router.get("/characters/{profile_id}/prompt", response_class=PlainTextResponse)
async def get_character_prompt(profile_id: str, sequencer=SequencerDep):
    return sequencer.store.get(profile_id).ai_prompt
