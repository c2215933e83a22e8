from typing import List

from fastapi import APIRouter, Depends, status

from packages.tiv_auth.gate import CallerContext
from packages.tiv_service.admin_service import AdminService
from packages.tiv_service.dto import InterviewDTO, InterviewOverviewDTO
from TIV.api.dependencies import get_admin_service, get_caller
from TIV.api.schemas import InterviewCreateRequest, SuccessResponse

router = APIRouter(prefix="/interviews", tags=["Interview"])


@router.post("", response_model=InterviewDTO, status_code=status.HTTP_201_CREATED)
def create_interview(
    body: InterviewCreateRequest,
    caller: CallerContext = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
):
    """Admin: create an interview definition."""
    return service.create_interview(body.model_dump(), caller)


@router.get("", response_model=List[InterviewDTO])
def list_interviews(
    caller: CallerContext = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
):
    """Admin: all interviews with their sessions, newest first."""
    return service.list_interviews(caller)


@router.get("/{interview_id}", response_model=InterviewOverviewDTO)
def get_interview(interview_id: str, service: AdminService = Depends(get_admin_service)):
    """Public overview shown to candidates before they start."""
    return service.get_interview_overview(interview_id)


@router.delete("/{interview_id}", response_model=SuccessResponse)
def delete_interview(
    interview_id: str,
    caller: CallerContext = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
):
    """Admin: delete an interview with its sessions and evaluations."""
    service.delete_interview(interview_id, caller)
    return SuccessResponse()
