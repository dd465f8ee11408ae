import logging
from flask import Blueprint, render_template, request, redirect, url_for, flash, abort, send_from_directory
from flask_login import login_required, current_user
from contract_tracker.backend import get_backend
from contract_tracker.constants import StageRegistry
from contract_tracker.exceptions import ContractTrackerError
from contract_tracker.extensions import db
from contract_tracker.forms import NewProcessForm, AdvanceStageForm, DocumentUploadForm
from contract_tracker.models import ProcessDocument, User
from contract_tracker.services.access_control import (
    Capability, can, can_view_process, navigation_for, requires_capability,
)
from contract_tracker.services.blob_store import LocalBlobStore
from contract_tracker.services.change_feed import PROCESSES
from contract_tracker.services.dashboard_service import compute_kpis, is_delayed, visible_processes
from contract_tracker.utils import utcnow
from .streaming import live_snapshot_response

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__)


@main_bp.app_context_processor
def inject_navigation():
    if current_user.is_authenticated:
        return {'nav_items': navigation_for(current_user)}
    return {'nav_items': []}


def _get_visible_process(process_id):
    process = get_backend().workflow.get_process(process_id)
    if process is None or not can_view_process(current_user, process):
        abort(404)
    return process


def _flash_form_errors(form):
    for errors in form.errors.values():
        for error in errors:
            flash(error, 'error')


@main_bp.route('/')
def index():
    return redirect(url_for('main.dashboard'))


@main_bp.route('/dashboard')
@login_required
def dashboard():
    processes = visible_processes(current_user)
    now = utcnow()
    kpis = compute_kpis(processes, now) if can(current_user, Capability.VIEW_KPIS) else None
    delayed_ids = {p.id for p in processes if is_delayed(p, now)}

    return render_template('main/dashboard.html',
                           processes=processes,
                           kpis=kpis,
                           delayed_ids=delayed_ids,
                           form=NewProcessForm(),
                           can_create=can(current_user, Capability.CREATE_PROCESS))


@main_bp.route('/processes', methods=['POST'])
@login_required
@requires_capability(Capability.CREATE_PROCESS)
def create_process():
    form = NewProcessForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for('main.dashboard'))
    try:
        process = get_backend().workflow.create_process(
            form.title.data, form.process_number.data, form.deadline.data, current_user
        )
    except ContractTrackerError as e:
        logger.error("Error creating process: %s", e, exc_info=True)
        flash(e.user_message, 'error')
        return redirect(url_for('main.dashboard'))

    flash(f"Processo {process.process_number} criado.", 'success')
    return redirect(url_for('main.dashboard'))


@main_bp.route('/processes/<int:process_id>')
@login_required
def process_detail(process_id):
    process = _get_visible_process(process_id)
    next_stage = StageRegistry.next_stage(process.current_stage)

    advance_form = AdvanceStageForm(target_stage=next_stage)
    advance_form.assigned_to.choices = [('', 'Manter responsável atual')] + [
        (str(u.id), u.name) for u in get_backend().users.list_users()
    ]

    return render_template('main/process_detail.html',
                           process=process,
                           next_stage=next_stage,
                           next_stage_label=StageRegistry.label(next_stage) if next_stage else None,
                           advance_form=advance_form,
                           upload_form=DocumentUploadForm(),
                           can_advance=can(current_user, Capability.ADVANCE_STAGE),
                           can_attach=can(current_user, Capability.ATTACH_DOCUMENT))


@main_bp.route('/processes/<int:process_id>/advance', methods=['POST'])
@login_required
@requires_capability(Capability.ADVANCE_STAGE)
def advance_stage(process_id):
    process = _get_visible_process(process_id)
    form = AdvanceStageForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for('main.process_detail', process_id=process_id))

    try:
        moved = get_backend().workflow.advance_stage(
            process, form.target_stage.data, current_user, reassign_to=form.assigned_to.data or None
        )
    except ContractTrackerError as e:
        logger.error("Error advancing process %s: %s", process_id, e, exc_info=True)
        flash(e.user_message, 'error')
        return redirect(url_for('main.process_detail', process_id=process_id))

    if moved:
        flash(f"Processo avançado para {process.stage_label}.", 'success')
    if not can_view_process(current_user, process):
        # Handed to someone else, no longer in this user's view
        return redirect(url_for('main.dashboard'))
    return redirect(url_for('main.process_detail', process_id=process_id))


@main_bp.route('/processes/<int:process_id>/documents', methods=['POST'])
@login_required
@requires_capability(Capability.ATTACH_DOCUMENT)
def upload_document(process_id):
    process = _get_visible_process(process_id)
    form = DocumentUploadForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for('main.process_detail', process_id=process_id))

    upload = form.file.data
    try:
        get_backend().documents.attach(
            process, upload.stream, upload.filename, current_user.name, content_type=upload.mimetype
        )
    except ContractTrackerError as e:
        logger.error("Upload error on process %s: %s", process_id, e, exc_info=True)
        flash(e.user_message, 'error')
    else:
        flash(f"{upload.filename} enviado.", 'success')
    return redirect(url_for('main.process_detail', process_id=process_id))


@main_bp.route('/processes/stream')
@login_required
def process_stream():
    user_id = current_user.id

    # Reloaded per snapshot so a role change mid-stream takes effect
    def snapshot():
        user = db.session.get(User, user_id)
        processes = visible_processes(user)
        payload = {'processes': [p.to_dict() for p in processes]}
        if can(user, Capability.VIEW_KPIS):
            payload['kpis'] = compute_kpis(processes)
        return payload

    return live_snapshot_response(PROCESSES, snapshot)


@main_bp.route('/documents/<int:document_id>')
@login_required
def open_document(document_id):
    document = db.session.get(ProcessDocument, document_id)
    if document is None or not can_view_process(current_user, document.process):
        abort(404)
    try:
        url = get_backend().blob_store.get_url(document.storage_key)
    except ContractTrackerError as e:
        logger.error("Could not link document %s: %s", document_id, e)
        abort(404)
    return redirect(url)


@main_bp.route('/uploads/<path:key>')
@login_required
def uploaded_file(key):
    store = get_backend().blob_store
    if not isinstance(store, LocalBlobStore):
        abort(404)
    document = ProcessDocument.query.filter_by(storage_key=key).first()
    if document is None or not can_view_process(current_user, document.process):
        abort(404)
    return send_from_directory(store.root, document.storage_key)
