from flask import current_app
from flask_mail import Message, Mail
from threading import Thread
from akvora.models.enums import RegistrationStatus

mail = Mail()

SUBJECTS = {
    RegistrationStatus.APPROVED: "Registration Approved",
    RegistrationStatus.REJECTED: "Registration Rejected",
    RegistrationStatus.PENDING: "Registration Status Updated",
}


def send_async_email(app, msg):
    with app.app_context():
        try:
            mail.send(msg)
        except Exception as e:
            app.logger.error(f"Failed to send email: {e}")


def send_registration_status_email(email, name, event, enrollment, message):
    """Tell a user their registration for ``event`` changed status."""
    app = current_app._get_current_object()
    subject = f"AKVORA {SUBJECTS[enrollment.status]}"
    body = (
        f"Hi {name},\n\n"
        f"{message}\n"
    )
    if enrollment.status == RegistrationStatus.APPROVED and event.meeting_link:
        body += f"\nJoin link: {event.meeting_link}\n"
    body += f"\nView your registrations: {app.config.get('CLIENT_URL')}/profile\n"

    # If in testing mode, log the email instead of sending it
    if app.testing:
        app.logger.info("--- MOCK STATUS EMAIL ---")
        app.logger.info(f"To: {email}")
        app.logger.info(f"Subject: {subject}")
        app.logger.info(f"Body: {body}")
        app.logger.info("--- END MOCK STATUS EMAIL ---")
        return

    msg = Message(
        subject,
        sender=("AKVORA", app.config.get("MAIL_USERNAME")),
        recipients=[email],
    )
    msg.body = body

    Thread(target=send_async_email, args=(app, msg)).start()
