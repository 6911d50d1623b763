# inverapp/services/email_service.py
# This service is responsible for all email notifications.

import smtplib
from email.message import EmailMessage

from flask import current_app
from markupsafe import escape

from inverapp import db
from inverapp.config import Config
from inverapp.models import EmailLog


class EmailTemplateError(ValueError):
    """Unknown email kind or missing template fields."""


_WRAPPER = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
    '<h2 style="color: {color};">{title}</h2>'
    '<p>Hola {recipient_name},</p>'
    '<p>{intro}</p>'
    '<div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">'
    '{body}'
    '</div>'
    '{outro}'
    '<p>Saludos,<br>Equipo InverApp</p>'
    '</div>'
)

EMAIL_TEMPLATES = {
    'task_assigned': {
        'subject': 'Nueva tarea asignada - InverApp',
        'color': '#2563eb',
        'title': 'Nueva Tarea Asignada',
        'intro': 'Se te ha asignado una nueva tarea en el sistema InverApp:',
        'body': (
            '<h3>{task_name}</h3>'
            '<p><strong>Proyecto:</strong> {project_name}</p>'
            '<p><strong>Cliente:</strong> {client_name}</p>'
            '<p><strong>Reserva:</strong> {reservation_number}</p>'
            '<p><strong>Departamento:</strong> {apartment_number}</p>'
        ),
        'outro': '<p>Por favor, accede al sistema para revisar los detalles completos.</p>',
        'fields': ('task_name', 'project_name', 'client_name', 'reservation_number', 'apartment_number'),
    },
    'task_completed': {
        'subject': 'Tarea completada - InverApp',
        'color': '#059669',
        'title': 'Tarea Completada',
        'intro': 'La siguiente tarea ha sido marcada como completada:',
        'body': (
            '<h3>{task_name}</h3>'
            '<p><strong>Proyecto:</strong> {project_name}</p>'
            '<p><strong>Cliente:</strong> {client_name}</p>'
            '<p><strong>Completada por:</strong> {completed_by}</p>'
        ),
        'outro': '',
        'fields': ('task_name', 'project_name', 'client_name', 'completed_by'),
    },
    'reservation_created': {
        'subject': 'Nueva reserva creada - InverApp',
        'color': '#2563eb',
        'title': 'Nueva Reserva Creada',
        'intro': 'Se ha creado una nueva reserva en el sistema:',
        'body': (
            '<h3>Reserva {reservation_number}</h3>'
            '<p><strong>Cliente:</strong> {client_name}</p>'
            '<p><strong>Proyecto:</strong> {project_name}</p>'
            '<p><strong>Departamento:</strong> {apartment_number}</p>'
            '<p><strong>Valor:</strong> {total_payment}</p>'
        ),
        'outro': '',
        'fields': ('reservation_number', 'client_name', 'project_name', 'apartment_number', 'total_payment'),
    },
}


def render_email(email_type, data, recipient_name):
    """
    Builds the subject and HTML body for one notification.
    Every interpolated value is HTML-escaped.

    Raises:
        EmailTemplateError: unknown email_type or a required field is missing
    """
    template = EMAIL_TEMPLATES.get(email_type)
    if template is None:
        raise EmailTemplateError(f"Email template not found for type: {email_type}")

    data = data or {}
    if not isinstance(data, dict):
        raise EmailTemplateError("Email data must be an object.")
    missing = [name for name in template['fields'] if data.get(name) in (None, '')]
    if missing:
        raise EmailTemplateError(f"Missing fields for '{email_type}': {', '.join(missing)}")

    values = {name: escape(str(data[name])) for name in template['fields']}
    body = template['body'].format(**values)
    html = _WRAPPER.format(
        color=template['color'],
        title=template['title'],
        recipient_name=escape(recipient_name or ''),
        intro=template['intro'],
        body=body,
        outro=template['outro'],
    )
    return template['subject'], html


def _send_email(msg):
    """
    Sends a message synchronously over SMTP. Errors propagate to the caller.
    """
    config = current_app.config
    smtp = smtplib.SMTP(config['MAIL_SERVER'], config['MAIL_PORT'])
    try:
        smtp.starttls()
        smtp.login(config['MAIL_USERNAME'], config['MAIL_PASSWORD'])
        smtp.send_message(msg)
    finally:
        smtp.quit()
    current_app.logger.info(f"Email sent successfully to {msg['To']}")


def _log_email(email_type, recipient_email, recipient_name, data, status, error=None):
    """Audit write. A failure here is logged and never reaches the caller."""
    try:
        db.session.add(EmailLog(
            email_type=email_type,
            recipient_email=recipient_email,
            recipient_name=recipient_name,
            data=data,
            status=status,
            error=error,
        ))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Could not write email log for {recipient_email}: {str(e)}")


def send_notification_email(email_type, data, recipient_email, recipient_name=None):
    """
    Renders and sends one notification email, then records it in email_logs.

    Returns:
        tuple: (dict, status_code) on error, or dict on success
    """
    if not recipient_email:
        return {"success": False, "error": "recipient_email is required."}, 400

    try:
        subject, html = render_email(email_type, data, recipient_name)
    except EmailTemplateError as e:
        return {"success": False, "error": str(e)}, 400

    try:
        Config.validate_email_config(current_app.config)
    except ValueError as e:
        current_app.logger.error(f"Email configuration error: {e}. Skipping email.")
        _log_email(email_type, recipient_email, recipient_name, data, 'skipped', str(e))
        return {"success": True, "sent": False, "message": "Email delivery is not configured; skipped."}

    msg = EmailMessage()
    msg['Subject'] = subject
    msg['From'] = current_app.config['MAIL_USERNAME']
    msg['To'] = recipient_email
    msg.set_content(f"{subject}\n\nAccede a InverApp para ver el detalle.")
    msg.add_alternative(html, subtype='html')

    try:
        _send_email(msg)
    except (smtplib.SMTPException, OSError) as e:
        current_app.logger.error(f"Error sending '{email_type}' email to {recipient_email}: {str(e)}")
        _log_email(email_type, recipient_email, recipient_name, data, 'failed', str(e))
        return {"success": False, "error": f"Failed to send email: {str(e)}"}, 502

    _log_email(email_type, recipient_email, recipient_name, data, 'sent')
    return {"success": True, "sent": True, "message": "Email sent successfully"}
