from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from packages.tiv_auth.gate import AdminGate, CallerContext
from packages.tiv_core.errors import NotFoundError, ValidationError
from packages.tiv_core.logging import get_logger
from packages.tiv_session.dto import InterviewDefinition
from packages.tiv_store.models import InterviewRecord, SessionRecord
from packages.tiv_store.repository import InterviewStore

from .dto import EvaluationDTO, InterviewDTO, InterviewOverviewDTO
from .mapper import InterviewMapper

logger = get_logger("tiv.service.admin")


class AdminService:
    """
    Admin operations on interview definitions and evaluations.
    Every method except get_interview_overview requires an admin caller.
    """

    def __init__(self, store: InterviewStore, admin_gate: AdminGate):
        self.store = store
        self.admin_gate = admin_gate

    def create_interview(
        self,
        definition: Union[InterviewDefinition, Dict[str, Any]],
        caller: CallerContext,
    ) -> InterviewDTO:
        """Raw fields are validated only after the caller passes the admin gate."""
        self.admin_gate.require_admin(caller)
        if not isinstance(definition, InterviewDefinition):
            try:
                definition = InterviewDefinition(**definition)
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid interview definition",
                    detail=[err["msg"] for err in e.errors()],
                )
        interview_id = self.store.create_interview(definition)
        logger.info(f"Interview {interview_id} created for role {definition.role}")
        return InterviewMapper.to_dto(self._load(interview_id))

    def list_interviews(self, caller: CallerContext) -> List[InterviewDTO]:
        self.admin_gate.require_admin(caller)
        return [
            InterviewMapper.to_dto(record, self.store.find_sessions(interview_id=record.id))
            for record in self.store.list_interviews()
        ]

    def get_interview_overview(self, interview_id: str) -> InterviewOverviewDTO:
        """Public: what a candidate sees before starting."""
        return InterviewMapper.to_overview(self._load(interview_id))

    def delete_interview(self, interview_id: str, caller: CallerContext) -> None:
        self.admin_gate.require_admin(caller)
        if not self.store.delete_interview(interview_id):
            raise NotFoundError("Interview not found")
        logger.info(f"Interview {interview_id} deleted with its sessions")

    def list_evaluations(self, caller: CallerContext) -> List[EvaluationDTO]:
        self.admin_gate.require_admin(caller)
        interviews: Dict[str, Optional[InterviewRecord]] = {}
        results = []
        for record in self.store.list_evaluations():
            if record.interview_id not in interviews:
                interviews[record.interview_id] = self.store.get_interview(record.interview_id)
            session: Optional[SessionRecord] = self.store.get_session(record.session_id)
            results.append(InterviewMapper.to_evaluation_dto(record, session, interviews[record.interview_id]))
        return results

    def get_evaluation(self, session_id: str, caller: CallerContext) -> EvaluationDTO:
        self.admin_gate.require_admin(caller)
        record = self.store.get_evaluation_by_session(session_id)
        if record is None:
            raise NotFoundError("Evaluation not found")
        return InterviewMapper.to_evaluation_dto(
            record,
            self.store.get_session(session_id),
            self.store.get_interview(record.interview_id),
        )

    def _load(self, interview_id: str) -> InterviewRecord:
        record = self.store.get_interview(interview_id)
        if record is None:
            raise NotFoundError("Interview not found")
        return record
