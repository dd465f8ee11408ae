import logging
from datetime import date, datetime
from contract_tracker.constants import ProcessStatus, StageRegistry
from contract_tracker.exceptions import ValidationError
from contract_tracker.extensions import db
from contract_tracker.models import Process, HistoryEntry, User
from contract_tracker.services.change_feed import PROCESSES
from contract_tracker.services.notification_service import send_assignment_email
from contract_tracker.services.persistence import commit_and_publish
from contract_tracker.utils import utcnow

logger = logging.getLogger(__name__)

CREATION_NOTE = 'Processo criado.'


def _parse_deadline(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError('Prazo final inválido. Use o formato AAAA-MM-DD.',
                              details={'deadline': 'invalid'})


class WorkflowService:
    """Creates processes and moves them through the fixed stage sequence."""

    def __init__(self, feed, notify=send_assignment_email):
        self.feed = feed
        self.notify = notify

    def create_process(self, title, process_number, deadline, creator):
        title = (title or '').strip()
        process_number = (process_number or '').strip()
        if isinstance(deadline, str):
            deadline = deadline.strip()

        missing = [name for name, value in
                   (('title', title), ('processNumber', process_number), ('deadline', deadline))
                   if not value]
        if missing:
            raise ValidationError(details={name: 'required' for name in missing})

        now = utcnow()
        first = StageRegistry.first()
        process = Process(
            title=title,
            process_number=process_number,
            current_stage=first,
            status=ProcessStatus.IN_PROGRESS,
            created_by_id=creator.id,
            assigned_to_id=creator.id,
            created_at=now,
            updated_at=now,
            final_deadline=_parse_deadline(deadline),
        )
        process.history.append(HistoryEntry(
            stage=first, changed_by=creator.name, timestamp=now, notes=CREATION_NOTE
        ))
        db.session.add(process)
        commit_and_publish(self.feed, PROCESSES)

        logger.info("Process %s (%s) created by user %s", process.id, process_number, creator.id)
        return process

    def advance_stage(self, process, target_stage, actor, reassign_to=None):
        """Moves ``process`` one stage forward.

        Returns False without writing anything when there is no target or the
        process already sits at the terminal stage. Any target other than the
        immediate successor is rejected.
        """
        successor = StageRegistry.next_stage(process.current_stage)
        if not target_stage or successor is None:
            logger.debug("Advance ignored for process %s at %s", process.id, process.current_stage)
            return False
        if target_stage != successor:
            raise ValidationError('Só é possível avançar para a próxima etapa.',
                                  details={'targetStage': target_stage, 'expected': successor})

        assignee = None
        if reassign_to:
            try:
                assignee = db.session.get(User, int(reassign_to))
            except (TypeError, ValueError):
                assignee = None
            if assignee is None:
                raise ValidationError('Responsável não encontrado.', details={'assignedTo': reassign_to})

        previous_assignee_id = process.assigned_to_id
        now = utcnow()
        process.history.append(HistoryEntry(
            stage=successor,
            changed_by=actor.name,
            timestamp=now,
            notes=f"Processo avançado para {StageRegistry.label(successor)}.",
        ))
        process.current_stage = successor
        process.updated_at = now
        if assignee is not None:
            process.assigned_to_id = assignee.id
        commit_and_publish(self.feed, PROCESSES)

        logger.info("Process %s advanced to %s by user %s", process.id, successor, actor.id)
        if assignee is not None and assignee.id != previous_assignee_id:
            try:
                self.notify(process, assignee, actor.name)
            except Exception:
                # The advance is already committed; the e-mail is best effort
                logger.exception("Assignment notification for process %s failed", process.id)
        return True

    @staticmethod
    def get_process(process_id):
        return db.session.get(Process, process_id)
