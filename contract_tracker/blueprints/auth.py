import logging
from flask import Blueprint, render_template, redirect, url_for, flash
from flask_login import login_user, logout_user, current_user
from contract_tracker.exceptions import AuthError
from contract_tracker.forms import LoginForm
from contract_tracker.services import auth_service

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))
    form = LoginForm()
    if form.validate_on_submit():
        try:
            user = auth_service.sign_in(form.email.data, form.password.data)
        except AuthError as e:
            logger.info("Login rejected (%s)", e.code)
            flash(e.user_message, 'error')
        else:
            login_user(user)
            return redirect(url_for('main.dashboard'))
    return render_template('login.html', form=form)


@auth_bp.route('/logout')
def logout():
    logout_user()
    return redirect(url_for('auth.login'))
