import logging
from flask import current_app
from sqlalchemy.exc import IntegrityError
from contract_tracker.constants import Role
from contract_tracker.exceptions import PersistenceError, ProvisioningError, ValidationError
from contract_tracker.extensions import db
from contract_tracker.models import User
from contract_tracker.services.change_feed import USERS
from contract_tracker.services.persistence import commit_and_publish

logger = logging.getLogger(__name__)

PROVISIONING_DISABLED_MESSAGE = (
    'Erro de configuração: a criação de usuários por e-mail/senha não está habilitada.'
)


class UserService:
    def __init__(self, feed):
        self.feed = feed

    @staticmethod
    def list_users():
        return User.query.order_by(User.name, User.id).all()

    def set_role(self, user_id, new_role):
        """Changes a user's role. Not recorded in any history log."""
        if new_role not in Role.ALL:
            raise ValidationError('Perfil inválido.', details={'role': new_role})
        user = db.session.get(User, user_id)
        if not user:
            raise ValidationError('Usuário não encontrado.', details={'id': user_id})

        if user.role != new_role:
            old_role = user.role
            user.role = new_role
            commit_and_publish(self.feed, USERS)
            logger.info("User %s role changed %s -> %s", user.id, old_role, new_role)
        return user

    def provision_user(self, name, email, temporary_password, role=Role.EQUIPE):
        """
        Creates the login credential and the profile in one go.
        Every failure surfaces with the same message, except a disabled
        password sign-in, which is a configuration problem and says so.
        The cause always goes to the log.
        """
        name = (name or '').strip()
        email = (email or '').strip().lower()
        role = role or Role.EQUIPE

        try:
            if not current_app.config.get('AUTH_PASSWORD_SIGNIN_ENABLED', True):
                raise ProvisioningError('operation_not_allowed', PROVISIONING_DISABLED_MESSAGE)
            if not name or not email or role not in Role.ALL:
                raise ProvisioningError('invalid')
            if len(temporary_password or '') < current_app.config.get('MIN_PASSWORD_LENGTH', 6):
                raise ProvisioningError('weak_password')
            if User.query.filter_by(email=email).first():
                raise ProvisioningError('email_in_use')

            user = User(name=name, email=email, role=role)
            user.set_password(temporary_password)
            db.session.add(user)
            try:
                commit_and_publish(self.feed, USERS)
            except PersistenceError as e:
                # A concurrent insert of the same e-mail trips the unique index
                reason = 'email_in_use' if isinstance(e.__cause__, IntegrityError) else 'persistence'
                raise ProvisioningError(reason) from e
        except ProvisioningError as e:
            logger.warning("Provisioning %s failed: %s", email, e.reason)
            raise

        logger.info("User %s provisioned as %s", user.id, role)
        return user
