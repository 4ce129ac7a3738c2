from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class ResultCreate(BaseModel):
    """Result payload as posted by clients.

    Fields stay permissive here; ``results_service.save_result`` owns the
    validation so that both the HTTP route and scripts share one rule set.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    student_id: Optional[str] = Field(default=None, alias="studentId")
    student_name: Optional[str] = Field(default=None, alias="studentName")
    subject: Optional[str] = None
    level: Optional[str] = None
    set: Optional[Union[int, str]] = None
    score: Optional[Union[int, float, str]] = None
    total: Optional[Union[int, float, str]] = None
    percentage: Optional[float] = None
    time_taken: Optional[int] = Field(default=None, alias="timeTaken")
    date: Optional[str] = None
    timestamp: Optional[int] = None


