import logging
from flask import Blueprint, render_template, redirect, url_for, flash
from flask_login import login_required
from contract_tracker.backend import get_backend
from contract_tracker.exceptions import ContractTrackerError, ProvisioningError
from contract_tracker.forms import InviteUserForm, RoleChangeForm
from contract_tracker.services.access_control import Capability, requires_capability
from contract_tracker.services.change_feed import USERS
from .streaming import live_snapshot_response

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/security')
@login_required
@requires_capability(Capability.VIEW_USER_DIRECTORY)
def security_panel():
    users = get_backend().users.list_users()
    role_forms = {u.id: RoleChangeForm(role=u.role, prefix=f"user-{u.id}") for u in users}
    return render_template('admin/security.html', users=users, role_forms=role_forms,
                           invite_form=InviteUserForm())


@admin_bp.route('/users/<int:user_id>/role', methods=['POST'])
@login_required
@requires_capability(Capability.CHANGE_ROLES)
def change_role(user_id):
    form = RoleChangeForm(prefix=f"user-{user_id}")
    if not form.validate_on_submit():
        flash('Perfil inválido.', 'error')
        return redirect(url_for('admin.security_panel'))
    try:
        user = get_backend().users.set_role(user_id, form.role.data)
    except ContractTrackerError as e:
        logger.error("Error updating role of user %s: %s", user_id, e, exc_info=True)
        flash(e.user_message, 'error')
    else:
        flash(f"Perfil de {user.name} atualizado.", 'success')
    return redirect(url_for('admin.security_panel'))


@admin_bp.route('/users', methods=['POST'])
@login_required
@requires_capability(Capability.PROVISION_USERS)
def invite_user():
    form = InviteUserForm()
    if not form.validate_on_submit():
        flash(ProvisioningError.default_message, 'error')
        return redirect(url_for('admin.security_panel'))
    try:
        user = get_backend().users.provision_user(
            form.name.data, form.email.data, form.password.data, form.role.data
        )
    except ContractTrackerError as e:
        logger.error("Invitation error: %s", e)
        flash(e.user_message, 'error')
    else:
        flash(f"Usuário {user.email} criado.", 'success')
    return redirect(url_for('admin.security_panel'))


@admin_bp.route('/users/stream')
@login_required
@requires_capability(Capability.VIEW_USER_DIRECTORY)
def user_stream():
    users = get_backend().users

    def snapshot():
        return {'users': [u.to_dict() for u in users.list_users()]}

    return live_snapshot_response(USERS, snapshot)
