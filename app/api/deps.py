from fastapi import Depends, Request

from app.core.gemini_factory import build_gemini_client
from app.core.settings import settings
from app.services.character_generation import CharacterGenerationService
from app.services.sequencer import Sequencer


def build_character_generator() -> CharacterGenerationService:
    return CharacterGenerationService(
        build_gemini_client(),
        identify_max_chars=settings.identify_max_chars,
        detail_max_chars=settings.detail_max_chars,
    )


async def get_sequencer(request: Request) -> Sequencer:
    """Return the process-wide sequencer, building it on first use."""
    sequencer = getattr(request.app.state, "sequencer", None)
    if sequencer is None:
        sequencer = Sequencer(
            build_character_generator(),
            skip_delay_seconds=settings.character_skip_delay_seconds,
        )
        request.app.state.sequencer = sequencer
    return sequencer


SequencerDep = Depends(get_sequencer)
