"""
Result submission endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grammarhub.api.deps import raise_for_failure
from grammarhub.db import schemas
from grammarhub.db.database import get_db
from grammarhub.services.results_service import ResultsService

router = APIRouter(tags=["results"])


@router.post("/results")
def save_result(payload: schemas.ResultCreate, db: Session = Depends(get_db)):
    return raise_for_failure(ResultsService(db).save_result(payload))
