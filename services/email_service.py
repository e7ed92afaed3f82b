"""
Email Service
=============
Outbound email for newsletters.  Every sender exposes
``send(to, subject, html) -> bool``; ``False`` means the message was not
delivered to the SMTP server.

Backends (``MAIL_BACKEND``)
---------------------------
  smtp  - SmtpEmailSender, STARTTLS + login when credentials are configured
  log   - LogEmailSender, logs the message and reports success (development/tests)

Senders may be called from worker threads, so they log through a module
logger rather than ``current_app.logger``.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

log = logging.getLogger('familyconnect.email')


class EmailSender:
    """Interface for the email collaborator."""

    def send(self, to, subject, html):
        raise NotImplementedError


class LogEmailSender(EmailSender):
    """Logs instead of sending."""

    def send(self, to, subject, html):
        log.info(f'[email] to={to} subject={subject!r} ({len(html or "")} chars)')
        return True


class SmtpEmailSender(EmailSender):

    def __init__(self, host, port, username='', password='', use_tls=True,
                 from_addr='noreply@example.com', timeout=30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_addr = from_addr
        self.timeout = timeout

    def build_message(self, to, subject, html):
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = self.from_addr
        msg['To'] = to
        msg.attach(MIMEText(html or '', 'html'))
        return msg

    def send(self, to, subject, html):
        msg = self.build_message(to, subject, html)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error(f'Failed to send email to {to}: {e}')
            return False

        log.info(f'Email sent to {to}')
        return True


def create_email_sender(app_config):
    """Build the sender selected by ``MAIL_BACKEND``."""
    backend = app_config.get('MAIL_BACKEND', 'smtp')
    if backend == 'log':
        return LogEmailSender()
    if backend == 'smtp':
        return SmtpEmailSender(
            host=app_config['SMTP_HOST'],
            port=app_config['SMTP_PORT'],
            username=app_config.get('SMTP_USERNAME', ''),
            password=app_config.get('SMTP_PASSWORD', ''),
            use_tls=app_config.get('SMTP_USE_TLS', True),
            from_addr=app_config.get('SMTP_FROM', 'noreply@example.com'),
            timeout=app_config.get('SMTP_TIMEOUT', 30),
        )
    raise ValueError(f'Unknown MAIL_BACKEND: {backend}')


def init_email(app):
    app.extensions['email_sender'] = create_email_sender(app.config)


def get_email_sender():
    return current_app.extensions['email_sender']
