from __future__ import annotations

import io

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session, selectinload

from trainhub.config import Settings
from trainhub.dependencies import Principal, get_db, get_settings, require_role
from trainhub.exceptions import NotFoundError
from trainhub.models import Module, TrainingProgress, Venue
from trainhub.schemas import ScoreForm
from trainhub.serializers import module_dict, progress_dict, venue_dict
from trainhub.services import leaderboard, scoring, students

router = APIRouter(prefix="/admin", tags=["scores"])

admin_required = require_role("admin")


def scoped_progress(session: Session, **filters) -> list[TrainingProgress]:
    return (
        session.query(TrainingProgress)
        .options(
            selectinload(TrainingProgress.student),
            selectinload(TrainingProgress.attendance),
        )
        .filter_by(**filters)
        .order_by(TrainingProgress.id)
        .all()
    )


@router.post("/upload-scores")
async def upload_scores(
    file: UploadFile = File(...),
    moduleId: int = Form(...),
    examIndex: str = Form(...),
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Sheet columns: regNo, name, mark. Marks are scaled by BULK_SCORE_MULTIPLIER."""
    contents = await file.read()
    df = students.read_sheet(file.filename, contents)
    result = scoring.upload_scores(
        session,
        module_id=moduleId,
        exam_index=examIndex,
        rows=df,
        multiplier=settings.BULK_SCORE_MULTIPLIER,
    )
    return {"message": "Scores uploaded", **result.as_dict()}


@router.post("/upload-score")
def upload_score(
    form: ScoreForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    progress = scoring.update_single_score(
        session,
        student_id=form.student_id,
        module_id=form.module_id,
        exam_index=form.exam_index,
        score=form.score,
    )
    return {"message": "Score updated", "progress": progress_dict(progress)}


@router.get("/modules/{module_id}/leaderboard")
def module_leaderboard(
    module_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    module = session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")
    rows = leaderboard.build_leaderboard(scoped_progress(session, module_id=module_id))
    return {"module": module_dict(module), "leaderboard": rows}


@router.get("/venues/{venue_id}/leaderboard")
def venue_leaderboard(
    venue_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    venue = session.get(Venue, venue_id)
    if not venue:
        raise NotFoundError("Venue not found")
    rows = leaderboard.build_leaderboard(scoped_progress(session, venue_id=venue_id))
    return {"venue": venue_dict(venue), "leaderboard": rows}


@router.get("/modules/{module_id}/leaderboard/export")
def export_module_leaderboard(
    module_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    module = session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")
    rows = leaderboard.build_leaderboard(scoped_progress(session, module_id=module_id))
    df = pd.DataFrame(
        [
            {
                "Rank": row["rank"],
                "Reg No": row["student"]["regNo"],
                "Name": row["student"]["name"],
                "Batch": row["student"]["batch"],
                "Department": row["student"]["department"],
                "Average Score": row["averageScore"],
                "Days Present": row["attendance"]["present"],
                "Days Recorded": row["attendance"]["total"],
                "Attendance %": row["attendance"]["percentage"],
            }
            for row in rows
        ],
        columns=[
            "Rank", "Reg No", "Name", "Batch", "Department",
            "Average Score", "Days Present", "Days Recorded", "Attendance %",
        ],
    )
    buffer = io.BytesIO()
    df.to_excel(buffer, index=False, sheet_name="Leaderboard", engine="openpyxl")
    return Response(
        buffer.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=module_{module_id}_leaderboard.xlsx"},
    )
