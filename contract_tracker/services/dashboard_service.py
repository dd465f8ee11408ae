from datetime import datetime, time
from contract_tracker.models import Process
from contract_tracker.services.access_control import Capability, can
from contract_tracker.utils import utcnow


def visible_processes(user):
    """All processes for diretor, otherwise only those assigned to ``user``."""
    query = Process.query
    if not can(user, Capability.VIEW_ALL_PROCESSES):
        query = query.filter_by(assigned_to_id=user.id)
    return query.order_by(Process.created_at.desc(), Process.id.desc()).all()


def is_delayed(process, now):
    deadline = process.final_deadline
    if deadline is None:
        return False
    # The deadline counts from midnight UTC of that day
    return datetime.combine(deadline, time.min) < now


def compute_kpis(processes, now=None):
    """Recomputed on every call; ``delayed`` can flip with the clock alone."""
    now = now or utcnow()
    total = len(processes)
    delayed = sum(1 for p in processes if is_delayed(p, now))
    return {'total': total, 'on_time': total - delayed, 'delayed': delayed}
