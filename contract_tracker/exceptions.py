"""
Exception hierarchy shared by the services and blueprints.

Services raise these types; blueprints catch them at the action that
triggered them, log the details and flash ``user_message`` next to the
control. Nothing here is retried automatically.

Usage:
    from contract_tracker.exceptions import ValidationError

    raise ValidationError("Título é obrigatório.", details={"title": "required"})
"""


class ContractTrackerError(Exception):
    """Base class. ``user_message`` is the short, localized text shown in the UI."""

    default_message = 'Ocorreu um erro inesperado.'

    def __init__(self, message=None, details=None):
        self.user_message = message or self.default_message
        self.details = details or {}
        super().__init__(self.user_message)


class AuthError(ContractTrackerError):
    """Bad credentials, disabled sign-in method, or e-mail already in use.

    Args:
        code: machine-readable cause (``invalid_credentials``,
              ``operation_not_allowed``).
    """

    default_message = 'Falha ao entrar. Verifique seu e-mail e senha.'

    def __init__(self, message=None, code='invalid_credentials'):
        self.code = code
        super().__init__(message)


class ValidationError(ContractTrackerError):
    """A required form field is missing or a business rule was violated."""

    default_message = 'Preencha todos os campos obrigatórios.'


class UploadError(ContractTrackerError):
    """The blob store failed to write the file or to produce its URL."""

    default_message = 'Falha ao enviar o arquivo. Tente novamente.'


class ProvisioningError(ContractTrackerError):
    """Account creation failed.

    Every cause shares one user-facing message, except
    ``operation_not_allowed`` (password sign-in switched off), which carries
    its own. ``reason`` keeps the real cause (``email_in_use``,
    ``weak_password``, ``invalid``) for the logs.
    """

    default_message = 'Erro ao criar usuário. O e-mail já pode estar em uso.'

    def __init__(self, reason, message=None):
        self.reason = reason
        super().__init__(message)


class PersistenceError(ContractTrackerError):
    """Any other failure while writing to the database."""

    default_message = 'Não foi possível salvar as alterações.'
