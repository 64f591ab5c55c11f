from fastapi import APIRouter, BackgroundTasks, Depends, Query

from healthwatch.api.deps import get_reading_evaluator, get_reading_repo
from healthwatch.schemas.readings import ReadingCreate, ReadingResponse
from healthwatch.services.readings import ReadingRepository

router = APIRouter(prefix="/subjects/{subject_id}/readings", tags=["Readings"])


@router.post("", response_model=ReadingResponse, status_code=201)
async def ingest_reading(
    subject_id: int,
    payload: ReadingCreate,
    background_tasks: BackgroundTasks,
    full_pass: bool = Query(False, description="Also run pattern, missed-reading and reinforcement checks"),
    repo: ReadingRepository = Depends(get_reading_repo),
    evaluate=Depends(get_reading_evaluator),
):
    """Persist a reading and evaluate it for alerts after the response is sent."""
    reading = await repo.add(payload.to_reading(subject_id))
    background_tasks.add_task(evaluate, reading, full_pass)
    return ReadingResponse.from_reading(reading)
