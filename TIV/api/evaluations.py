from typing import List

from fastapi import APIRouter, Depends

from packages.tiv_auth.gate import CallerContext
from packages.tiv_service.admin_service import AdminService
from packages.tiv_service.dto import EvaluationDTO
from TIV.api.dependencies import get_admin_service, get_caller

router = APIRouter(prefix="/evaluations", tags=["Evaluation"])


@router.get("", response_model=List[EvaluationDTO])
def list_evaluations(
    caller: CallerContext = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_evaluations(caller)


@router.get("/{session_id}", response_model=EvaluationDTO)
def get_evaluation(
    session_id: str,
    caller: CallerContext = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
):
    return service.get_evaluation(session_id, caller)
