import smtplib
import subprocess
from email.message import EmailMessage
from typing import Iterable, Optional, Union

from foundation.config import Settings
from foundation.core.exceptions import AppException
from foundation.core.logging import get_logger

logger = get_logger("foundation.mail")


class MailError(AppException):
    """Error while handing a message to the mail transport"""

    error_type = "mail_error"

    def __init__(self, message: str = "Mail could not be sent"):
        super().__init__(message=message)


class SmtpTransport:
    """Delivers messages to an SMTP server, opening one connection per send"""

    def __init__(
        self,
        host: str,
        port: int = 25,
        username: Optional[str] = None,
        password: Optional[str] = None,
        tls: bool = False,
        timeout: float = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.tls = tls
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    def __repr__(self) -> str:
        return f"<SmtpTransport {self.host}:{self.port}>"


class SendmailTransport:
    """Pipes messages into a local sendmail binary"""

    def __init__(self, path: str = "/usr/sbin/sendmail", timeout: float = 10):
        self.path = path
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        subprocess.run(
            [self.path, "-t", "-i"],
            input=message.as_bytes(),
            check=True,
            timeout=self.timeout,
        )

    def __repr__(self) -> str:
        return f"<SendmailTransport {self.path}>"


Transport = Union[SmtpTransport, SendmailTransport]


class Mailer:
    """Composes messages and hands them to the configured transport"""

    def __init__(self, transport: Transport):
        self.transport = transport

    def send(
        self,
        to: Union[str, Iterable[str]],
        subject: str,
        body: str,
        sender: Optional[str] = None,
        html: Optional[str] = None,
    ) -> EmailMessage:
        """
        Compose a message and deliver it

        Args:
            to: One recipient or several
            subject: Subject line
            body: Plain-text body
            sender: Optional ``From`` address
            html: Optional HTML alternative of the body

        Returns:
            EmailMessage: The message that was delivered

        Raises:
            MailError: If the transport rejects the message
        """
        message = EmailMessage()
        message["To"] = to if isinstance(to, str) else ", ".join(to)
        message["Subject"] = subject
        if sender:
            message["From"] = sender
        message.set_content(body)
        if html is not None:
            message.add_alternative(html, subtype="html")

        try:
            self.transport.send(message)
        except (smtplib.SMTPException, subprocess.SubprocessError, OSError) as e:
            logger.error("Mail delivery failed", exception=e, transport=repr(self.transport))
            raise MailError(message=f"Mail could not be sent: {e}") from e

        logger.info("Mail sent", subject=subject, transport=repr(self.transport))
        return message


def build_transport(settings: Settings) -> Optional[Transport]:
    """
    Create the transport selected by ``MAIL_TRANSPORT``

    Returns:
        The transport, or ``None`` if no known transport is configured
    """
    kind = (settings.MAIL_TRANSPORT or "").strip().lower()

    if kind == "smtp":
        if not settings.MAIL_HOST:
            logger.warning("MAIL_TRANSPORT is smtp but MAIL_HOST is not set")
            return None
        return SmtpTransport(
            host=settings.MAIL_HOST,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            tls=settings.MAIL_TLS,
            timeout=settings.MAIL_TIMEOUT,
        )
    if kind == "sendmail":
        return SendmailTransport(
            path=settings.MAIL_SENDMAIL_PATH or "/usr/sbin/sendmail",
            timeout=settings.MAIL_TIMEOUT,
        )
    if kind == "local":
        return SmtpTransport(host="localhost", port=25, timeout=settings.MAIL_TIMEOUT)

    if kind:
        logger.warning(f"Unknown mail transport: {kind}")
    return None


def build_mailer(settings: Settings) -> Optional[Mailer]:
    transport = build_transport(settings)
    if transport is None:
        return None
    return Mailer(transport)
