from fastapi import APIRouter, Depends, status

from packages.tiv_auth.gate import CallerContext
from packages.tiv_service.dto import (
    AnswerResultDTO,
    SessionRequestDTO,
    SessionStartDTO,
    SessionViewDTO,
)
from packages.tiv_service.session_service import SessionService
from TIV.api.dependencies import get_caller, get_session_service
from TIV.api.schemas import AnswerSubmitRequest, SessionCreateRequest, SuccessResponse, VerifyRequest

router = APIRouter(prefix="/sessions", tags=["Session"])


@router.post("/start", response_model=SessionStartDTO, status_code=status.HTTP_201_CREATED)
def start_session(body: SessionCreateRequest, service: SessionService = Depends(get_session_service)):
    """
    Start an interview directly (no email verification).
    Returns the first question and a resume token.
    """
    return service.start_session(body.interview_id, body.candidate_name, body.candidate_email)


@router.post("/request", response_model=SessionRequestDTO, status_code=status.HTTP_201_CREATED)
def request_session(body: SessionCreateRequest, service: SessionService = Depends(get_session_service)):
    """Create a pending session and email the verification link."""
    return service.request_session(body.interview_id, body.candidate_name, body.candidate_email)


@router.post("/verify", response_model=SessionStartDTO)
def verify_session(body: VerifyRequest, service: SessionService = Depends(get_session_service)):
    return service.verify_session(body.token, body.session_id)


@router.get("/resume/{resume_token}", response_model=SessionViewDTO)
def resume_session(resume_token: str, service: SessionService = Depends(get_session_service)):
    """Server-side resumption: the token is the only state the client keeps."""
    return service.resume_session(resume_token)


@router.get("/{session_id}", response_model=SessionViewDTO)
def get_session(session_id: str, service: SessionService = Depends(get_session_service)):
    """
    Get current session status.
    """
    return service.get_session(session_id)


@router.post("/{session_id}/answers", response_model=AnswerResultDTO)
def submit_answer(
    session_id: str,
    body: AnswerSubmitRequest,
    service: SessionService = Depends(get_session_service),
):
    """
    Submit an answer for the current question.
    Delegates to Service Layer for Concurrency Control and Logic.
    """
    return service.submit_answer(session_id, body.answer)


@router.post("/{session_id}/lock", response_model=SessionViewDTO)
def lock_session(
    session_id: str,
    caller: CallerContext = Depends(get_caller),
    service: SessionService = Depends(get_session_service),
):
    """Admin: stop a session. Locked sessions accept no further answers."""
    return service.lock_session(session_id, caller)


@router.delete("/{session_id}", response_model=SuccessResponse)
def delete_session(
    session_id: str,
    caller: CallerContext = Depends(get_caller),
    service: SessionService = Depends(get_session_service),
):
    service.delete_session(session_id, caller)
    return SuccessResponse()
