from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.services.profile_store import CharacterProfile
from app.services.sequencer import Phase


class AnalysisStartRequest(BaseModel):
    text: str


class AnalysisRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    records: list[CharacterProfile]
    phase: Phase
    status_message: str
    error: str | None = None
    is_running: bool
    is_paused: bool
    cursor: int
    total: int
    completed_count: int
    progress_fraction: float
