from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User, UserRole
from ..schemas.dashboard import DoctorDashboard, PatientDashboard, VhvDashboard
from ..services import dashboards as dashboard_service
from ..utils.deps import require_roles

#one dashboard per role, each for the calling user's own profile
router = APIRouter(prefix="/api", tags=["dashboards"])

@router.get("/doctor/dashboard", response_model=DoctorDashboard)
async def get_doctor_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.DOCTOR))
):
    """Assignments, review queue and open alerts of the calling doctor."""
    return dashboard_service.doctor_dashboard(db, current_user)

@router.get("/vhv/dashboard", response_model=VhvDashboard)
async def get_vhv_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.VHV))
):
    """Assignments, open tasks and returned intakes of the calling VHV."""
    return dashboard_service.vhv_dashboard(db, current_user)

@router.get("/patient/dashboard", response_model=PatientDashboard)
async def get_patient_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.PATIENT))
):
    """Appointments, medications, latest vitals and open alerts of the calling patient."""
    return dashboard_service.patient_dashboard(db, current_user)
