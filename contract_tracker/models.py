from flask import url_for
from flask_login import UserMixin
from sqlalchemy import event
from werkzeug.security import generate_password_hash, check_password_hash
from contract_tracker.constants import Role, ProcessStatus, StageRegistry
from contract_tracker.exceptions import PersistenceError
from contract_tracker.extensions import db
from contract_tracker.utils import utcnow


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(20), nullable=False, default=Role.EQUIPE)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'email': self.email, 'role': self.role}


class Process(db.Model):
    __tablename__ = 'processes'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    process_number = db.Column(db.String(50), nullable=False)
    current_stage = db.Column(db.String(30), nullable=False, default=StageRegistry.first())
    status = db.Column(db.String(20), nullable=False, default=ProcessStatus.IN_PROGRESS)

    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    assigned_to_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)
    final_deadline = db.Column(db.Date)

    created_by = db.relationship('User', foreign_keys=[created_by_id])
    assigned_to = db.relationship('User', foreign_keys=[assigned_to_id])

    # Append-only children, kept in insertion order
    documents = db.relationship('ProcessDocument', back_populates='process',
                                order_by='ProcessDocument.id', cascade='all, delete-orphan')
    history = db.relationship('HistoryEntry', back_populates='process',
                              order_by='HistoryEntry.id', cascade='all, delete-orphan')

    @property
    def deadlines(self):
        return {'final': self.final_deadline}

    @property
    def stage_label(self):
        return StageRegistry.label(self.current_stage)

    @property
    def next_stage(self):
        return StageRegistry.next_stage(self.current_stage)

    def history_for_display(self):
        """Newest first."""
        return sorted(self.history, key=lambda h: (h.timestamp, h.id or 0), reverse=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'processNumber': self.process_number,
            'currentStage': self.current_stage,
            'stageLabel': self.stage_label,
            'status': self.status,
            'createdBy': self.created_by_id,
            'assignedTo': self.assigned_to_id,
            'deadlines': {'final': self.final_deadline.isoformat() if self.final_deadline else None},
            'documents': len(self.documents),
        }


class ProcessDocument(db.Model):
    __tablename__ = 'process_documents'

    id = db.Column(db.Integer, primary_key=True)
    process_id = db.Column(db.Integer, db.ForeignKey('processes.id'), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    storage_key = db.Column(db.String(512), nullable=False, unique=True)
    uploaded_at = db.Column(db.DateTime, default=utcnow)
    uploaded_by = db.Column(db.String(100))

    process = db.relationship('Process', back_populates='documents')

    @property
    def url(self):
        """Stable in-app link; the blob URL is resolved when it is followed."""
        return url_for('main.open_document', document_id=self.id)


class HistoryEntry(db.Model):
    __tablename__ = 'history_entries'

    id = db.Column(db.Integer, primary_key=True)
    process_id = db.Column(db.Integer, db.ForeignKey('processes.id'), nullable=False)
    stage = db.Column(db.String(30), nullable=False)
    changed_by = db.Column(db.String(100))
    timestamp = db.Column(db.DateTime, default=utcnow)
    notes = db.Column(db.Text)

    process = db.relationship('Process', back_populates='history')

    @property
    def stage_label(self):
        return StageRegistry.label(self.stage)


@event.listens_for(ProcessDocument, 'before_update')
@event.listens_for(HistoryEntry, 'before_update')
def _reject_update(mapper, connection, target):
    raise PersistenceError(details={'table': mapper.local_table.name, 'id': target.id})
