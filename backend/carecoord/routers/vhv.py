from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..models.user import User
from ..schemas.assignment import AssignmentDetail
from ..services import patients as patient_service
from ..utils.deps import require_staff

router = APIRouter(prefix="/api/vhv", tags=["vhv"])

@router.get("/assignments", response_model=List[AssignmentDetail])
async def get_vhv_assignments(
    vhv_id: int = Query(..., alias="vhvId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """ACTIVE assignments of a VHV with patient, intakes and tasks."""
    return patient_service.list_vhv_assignments(db, vhv_id)
