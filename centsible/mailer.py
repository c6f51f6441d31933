import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .errors import DeliveryFailed

logger = logging.getLogger(__name__)

OTP_TEMPLATE = """
<html><body>
<h2>{heading}</h2>
<p>{intro}</p>
<h1 style="letter-spacing: 8px; color: #6C63FF;">{otp}</h1>
<p>This code expires in {ttl} minutes.</p>
</body></html>
"""


class Mailer:
    """Outbound SMTP mail, one connection per message."""

    def __init__(self, host, port, username='', password='', sender='',
                 use_ssl=True, suppress_send=False, timeout=10):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.use_ssl = use_ssl
        self.suppress_send = suppress_send
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            host=config['MAIL_HOST'],
            port=config['MAIL_PORT'],
            username=config['MAIL_USERNAME'],
            password=config['MAIL_PASSWORD'],
            sender=config['MAIL_FROM'],
            use_ssl=config['MAIL_USE_SSL'],
            suppress_send=config['MAIL_SUPPRESS_SEND'],
        )

    def send(self, to_email, subject, html):
        if self.suppress_send:
            logger.info('[DEV] Mail to %s suppressed: %s\n%s', to_email, subject, html)
            return

        msg = MIMEMultipart()
        msg['From'] = self.sender
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(html, 'html'))

        try:
            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with server:
                if not self.use_ssl:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error('Email to %s failed: %s', to_email, exc)
            raise DeliveryFailed() from exc
        logger.info('Email sent to %s: %s', to_email, subject)

    def send_otp(self, to_email, otp, purpose, ttl_minutes):
        if purpose == 'reset':
            subject = 'Centsible - Password Reset OTP'
            heading = 'Centsible Password Reset'
            intro = 'Use this code to reset your password:'
        else:
            subject = 'Centsible - Email Verification OTP'
            heading = 'Centsible Email Verification'
            intro = 'Your OTP code is:'
        html = OTP_TEMPLATE.format(heading=heading, intro=intro, otp=otp, ttl=ttl_minutes)
        self.send(to_email, subject, html)
