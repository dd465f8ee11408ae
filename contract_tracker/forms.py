from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import StringField, PasswordField, SubmitField, SelectField, HiddenField
from wtforms.fields import DateField
from wtforms.validators import DataRequired, Email, Length, Optional
from contract_tracker.constants import Role

ROLE_CHOICES = [(role, Role.LABELS[role]) for role in Role.ALL]


# --- AUTH FORMS ---

class LoginForm(FlaskForm):
    email = StringField('E-mail', validators=[DataRequired(), Email()])
    password = PasswordField('Senha', validators=[DataRequired()])
    submit = SubmitField('Entrar')


# --- PROCESS FORMS ---

class NewProcessForm(FlaskForm):
    title = StringField('Título do Processo', validators=[DataRequired(), Length(max=200)])
    process_number = StringField('Número do Processo', validators=[DataRequired(), Length(max=50)])
    deadline = DateField('Prazo Final', validators=[DataRequired()])
    submit = SubmitField('Criar Processo')


class AdvanceStageForm(FlaskForm):
    target_stage = HiddenField(validators=[DataRequired()])
    # Blank keeps the current assignee
    assigned_to = SelectField('Atribuir a', choices=[], validate_choice=False, validators=[Optional()])
    submit = SubmitField('Avançar')


class DocumentUploadForm(FlaskForm):
    file = FileField('Documento', validators=[FileRequired(message='Selecione um arquivo.')])
    submit = SubmitField('Enviar')


# --- SECURITY PANEL FORMS ---

class InviteUserForm(FlaskForm):
    name = StringField('Nome', validators=[DataRequired(), Length(max=100)])
    email = StringField('E-mail', validators=[DataRequired(), Email()])
    password = PasswordField('Senha Temporária', validators=[DataRequired()])
    role = SelectField('Perfil', choices=ROLE_CHOICES, default=Role.EQUIPE)
    submit = SubmitField('Convidar Usuário')


class RoleChangeForm(FlaskForm):
    role = SelectField('Perfil', choices=ROLE_CHOICES)
