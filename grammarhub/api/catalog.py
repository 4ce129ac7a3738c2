"""
Question catalog endpoints.
"""
from fastapi import APIRouter, HTTPException, status

from grammarhub.quiz.catalog import QuestionCatalog, QuestionSetError
from grammarhub.utils.settings import get_settings

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _catalog() -> QuestionCatalog:
    return QuestionCatalog(get_settings().data_dir)


@router.get("/subjects")
def list_subjects():
    subjects = _catalog().list_subjects()
    return {"success": True, "subjects": [cfg.as_card() for cfg in subjects]}


@router.get("/{subject}/{level}/{set_number}")
def get_question_set(subject: str, level: str, set_number: str):
    catalog = _catalog()
    try:
        config = catalog.load_subject(subject)
        questions = catalog.load_question_set(subject, level, set_number)
    except QuestionSetError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {
        "success": True,
        "subject": config.as_card(),
        "level": level,
        "set": set_number,
        "questions": [q.model_dump() for q in questions],
    }
