import logging
from flask import current_app
from contract_tracker.exceptions import AuthError
from contract_tracker.models import User

logger = logging.getLogger(__name__)

SIGNIN_DISABLED_MESSAGE = (
    'Erro de configuração: o login por e-mail/senha não está habilitado. '
    'Ative-o nas configurações do servidor.'
)


def sign_in(email, password):
    """Returns the matching user or raises AuthError."""
    if not current_app.config.get('AUTH_PASSWORD_SIGNIN_ENABLED', True):
        logger.warning("Password sign-in attempted while disabled")
        raise AuthError(SIGNIN_DISABLED_MESSAGE, code='operation_not_allowed')

    email = (email or '').strip().lower()
    user = User.query.filter_by(email=email).first()
    if user is None or not user.check_password(password or ''):
        logger.info("Failed sign-in for %s", email)
        raise AuthError()
    return user
