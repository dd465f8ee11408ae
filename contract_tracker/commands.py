import click
from contract_tracker.backend import get_backend
from contract_tracker.constants import Role
from contract_tracker.exceptions import ProvisioningError
from contract_tracker.extensions import db
from contract_tracker.models import User


def register_commands(app):

    @app.cli.command('seed-db')
    @click.option('--email', default='diretor@contratos.com.br', show_default=True)
    @click.option('--name', default='Diretor', show_default=True)
    @click.option('--password', default='trocar123', show_default=True)
    def seed_db(email, name, password):
        """Creates the tables and a first diretor account."""
        db.create_all()
        if User.query.filter_by(email=email.strip().lower()).first():
            click.echo(f"{email} already exists, nothing to do.")
            return
        try:
            get_backend().users.provision_user(name, email, password, Role.DIRETOR)
        except ProvisioningError as e:
            raise click.ClickException(f"Could not create {email}: {e.reason}")
        click.echo(f"Database seeded. Login: {email} / {password}")
