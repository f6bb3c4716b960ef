"""
Email Service
Sends emails for bookable assignments, budget submissions, reviews and expenses
"""

import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Dict, List, Optional, Tuple

from finance_portal.config.settings import settings
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


# template name -> (subject prefix, header colour)
EMAIL_TEMPLATES: Dict[str, Tuple[str, str]] = {
    "coordinator_assigned": ("📌 You are coordinating", "#2196F3"),
    "budget_submitted": ("📝 Budget submitted for review", "#FF9800"),
    "budget_approved": ("✅ Budget approved", "#4CAF50"),
    "budget_rejected": ("❌ Budget rejected", "#f44336"),
    "venue_assigned": ("🏛️ Venue assigned", "#2196F3"),
    "expense_added": ("💰 New expense recorded", "#9C27B0"),
}


class EmailService:
    """Email service for portal notifications"""

    def __init__(self):
        """Initialize email service with SMTP configuration"""
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL or self.smtp_username
        self.from_name = settings.FROM_NAME

        # Check if email is configured
        self.is_configured = bool(self.smtp_username and self.smtp_password)

        if not self.is_configured:
            logger.warning("⚠️ Email service not configured. Set SMTP credentials in .env file.")

    def _send_email(self, to_email: str, subject: str, html_content: str, text_content: str = None) -> bool:
        """
        Send email via SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email body
            text_content: Plain text fallback (optional)

        Returns:
            bool: True if the message was handed to the SMTP server
        """
        if not self.is_configured:
            logger.warning(f"Email not sent to {to_email} - SMTP not configured")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"✅ Email sent to {to_email}: {subject}")
            return True

        except Exception as e:
            # Mail is best-effort, the caller's request has already succeeded
            logger.error(f"❌ Failed to send email to {to_email}: {str(e)}")
            return False

    def _render(
        self,
        heading: str,
        colour: str,
        recipient_name: str,
        message: str,
        details: List[Tuple[str, str]]
    ) -> Tuple[str, str]:
        """Build the HTML body and plain-text fallback for one notification"""
        rows = "\n".join(
            f"""                <div class="detail-row">
                    <span class="label">{escape(label)}:</span>
                    <span class="value">{escape(value)}</span>
                </div>"""
            for label, value in details
        )

        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: {colour}; color: white; padding: 20px; text-align: center; border-radius: 5px 5px 0 0; }}
        .content {{ background: #f9f9f9; padding: 20px; border: 1px solid #ddd; }}
        .details {{ background: white; padding: 15px; margin: 15px 0; border-left: 4px solid {colour}; }}
        .detail-row {{ margin: 10px 0; padding: 5px 0; border-bottom: 1px solid #eee; }}
        .label {{ font-weight: bold; color: #555; display: inline-block; width: 150px; }}
        .value {{ color: #333; }}
        .footer {{ background: #333; color: white; padding: 15px; text-align: center; font-size: 12px; border-radius: 0 0 5px 5px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{escape(heading)}</h1>
        </div>

        <div class="content">
            <p>Dear {escape(recipient_name)},</p>

            <p>{escape(message)}</p>

            <div class="details">
{rows}
            </div>

            <p><a href="{settings.PORTAL_URL}">Open the Finance Portal</a></p>
        </div>

        <div class="footer">
            <p>This is an automated message from the {escape(settings.APP_NAME)}</p>
            <p>Please do not reply to this email</p>
        </div>
    </div>
</body>
</html>
"""

        detail_lines = "\n".join(f"- {label}: {value}" for label, value in details)
        text_content = f"""
{heading.upper()}

Dear {recipient_name},

{message}

DETAILS:
{detail_lines}

Open the portal: {settings.PORTAL_URL}

---
This is an automated message from the {settings.APP_NAME}.
Please do not reply to this email.
"""
        return html_content, text_content

    def send_template(
        self,
        to_email: str,
        recipient_name: str,
        template: str,
        title: str,
        message: str,
        details: Optional[List[Tuple[str, str]]] = None
    ) -> bool:
        """
        Send one of the portal's notification emails

        Args:
            to_email: Recipient email address
            recipient_name: Greeting name
            template: Key of EMAIL_TEMPLATES
            title: Title of the notification, used as subject suffix
            message: Body paragraph
            details: Label/value rows shown in the details box
        """
        subject_prefix, colour = EMAIL_TEMPLATES.get(template, ("🔔 Notification", "#607D8B"))
        subject = f"{subject_prefix} - {title}"
        html_content, text_content = self._render(
            subject_prefix, colour, recipient_name, message, details or []
        )
        return self._send_email(to_email, subject, html_content, text_content)


# Create singleton instance
email_service = EmailService()
