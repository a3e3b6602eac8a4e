from fastapi import APIRouter, status

from app.api.deps import SequencerDep
from app.api.v1.schemas import AnalysisRead, AnalysisStartRequest


router = APIRouter(tags=["analysis"])


@router.get("/analysis", response_model=AnalysisRead)
async def get_analysis(sequencer=SequencerDep):
    return AnalysisRead.model_validate(sequencer.view())


@router.post("/analysis/start", response_model=AnalysisRead, status_code=status.HTTP_202_ACCEPTED)
async def start_analysis(payload: AnalysisStartRequest, sequencer=SequencerDep):
    view = await sequencer.start(payload.text)
    return AnalysisRead.model_validate(view)


@router.post("/analysis/pause", response_model=AnalysisRead)
async def pause_analysis(sequencer=SequencerDep):
    return AnalysisRead.model_validate(sequencer.pause())


@router.post("/analysis/resume", response_model=AnalysisRead)
async def resume_analysis(sequencer=SequencerDep):
    return AnalysisRead.model_validate(sequencer.resume())


@router.post("/analysis/stop", response_model=AnalysisRead)
async def stop_analysis(sequencer=SequencerDep):
    return AnalysisRead.model_validate(sequencer.stop())
