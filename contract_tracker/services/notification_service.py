from contract_tracker.tasks import send_async_email


def send_assignment_email(process, assignee, actor_name):
    """Queues a plain-text e-mail telling ``assignee`` a process now waits on them."""
    if not assignee or not assignee.email:
        return False

    subject = f"Processo {process.process_number} atribuído a você"
    body = f"""
    Olá {assignee.name},

    {actor_name} atribuiu a você o processo "{process.title}" ({process.process_number}).
    Etapa atual: {process.stage_label}

    Acesse o painel para dar andamento.
    """
    send_async_email.delay(subject, assignee.email, body, is_html=False)
    return True
