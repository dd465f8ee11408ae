import functools
import logging
from flask import abort
from flask_login import current_user
from contract_tracker.constants import Role

logger = logging.getLogger(__name__)


class Capability:
    VIEW_OWN_PROCESSES = 'view_own_processes'
    CREATE_PROCESS = 'create_process'
    ADVANCE_STAGE = 'advance_stage'
    ATTACH_DOCUMENT = 'attach_document'
    VIEW_ALL_PROCESSES = 'view_all_processes'
    VIEW_KPIS = 'view_kpis'
    VIEW_USER_DIRECTORY = 'view_user_directory'
    CHANGE_ROLES = 'change_roles'
    PROVISION_USERS = 'provision_users'


EQUIPE_CAPABILITIES = frozenset({
    Capability.VIEW_OWN_PROCESSES,
    Capability.CREATE_PROCESS,
    Capability.ADVANCE_STAGE,
    Capability.ATTACH_DOCUMENT,
})

DIRETOR_CAPABILITIES = EQUIPE_CAPABILITIES | frozenset({
    Capability.VIEW_ALL_PROCESSES,
    Capability.VIEW_KPIS,
    Capability.VIEW_USER_DIRECTORY,
    Capability.CHANGE_ROLES,
    Capability.PROVISION_USERS,
})


def capabilities_for(role):
    # Anything that is not diretor gets the standard set
    if role == Role.DIRETOR:
        return DIRETOR_CAPABILITIES
    return EQUIPE_CAPABILITIES


def can(user, capability):
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    return capability in capabilities_for(user.role)


def can_view_process(user, process):
    if can(user, Capability.VIEW_ALL_PROCESSES):
        return True
    return can(user, Capability.VIEW_OWN_PROCESSES) and process.assigned_to_id == user.id


def navigation_for(user):
    """Sidebar entries as (view id, label, endpoint)."""
    items = [('dashboard', 'Dashboard', 'main.dashboard')]
    if can(user, Capability.VIEW_USER_DIRECTORY):
        items.append(('security', 'Segurança', 'admin.security_panel'))
    return items


def requires_capability(capability):
    """View decorator: 403 unless the logged-in user holds ``capability``."""
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            if not can(current_user, capability):
                logger.warning("User %s denied %s", getattr(current_user, 'id', None), capability)
                abort(403)
            return f(*args, **kwargs)
        return decorated
    return decorator
