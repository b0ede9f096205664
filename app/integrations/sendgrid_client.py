import sendgrid
from sendgrid.helpers.mail import Mail, Email, To, Content
from typing import Dict, Optional
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SendGridClient:
    """Wrapper for SendGrid email operations"""

    def __init__(self):
        self.api_key = Config.SENDGRID_API_KEY
        self.from_email = Config.SENDGRID_FROM_EMAIL

        if self.api_key:
            self.client = sendgrid.SendGridAPIClient(api_key=self.api_key)
        else:
            self.client = None
            logger.warning("SendGrid API key not configured")

    def send_email(self, to_email: str, subject: str, html_content: str,
                   plain_content: str = None) -> Optional[Dict]:
        """Send email via SendGrid"""
        if not self.client:
            logger.error("SendGrid client not initialized")
            return None

        try:
            message = Mail(
                from_email=Email(self.from_email, "CourtSlot"),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if plain_content:
                message.plain_text_content = Content("text/plain", plain_content)

            response = self.client.send(message)

            return {
                'status_code': response.status_code,
                'message_id': response.headers.get('X-Message-Id')
            }
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return None

    def send_reservation_email(self, to_email: str, name: str, heading: str,
                               booking_details: Dict, footer: str = None) -> Optional[Dict]:
        """Send a reservation summary (confirmation, cancellation or status change)"""
        subject = f"{heading} - {booking_details['court']} on {booking_details['date']}"
        extra = f"<p>{footer}</p>" if footer else ""
        reason = (
            f"<p><strong>Reason:</strong> {booking_details['reason']}</p>"
            if booking_details.get('reason') else ""
        )
        html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2>{heading}</h2>
                <p>Hi {name},</p>
                <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
                    <p><strong>Court:</strong> {booking_details['court']}</p>
                    <p><strong>Date:</strong> {booking_details['date']}</p>
                    <p><strong>Time:</strong> {booking_details['time']}</p>
                    <p><strong>Status:</strong> {booking_details['status']}</p>
                    <p><strong>Price:</strong> {booking_details['price']}</p>
                    {reason}
                </div>
                {extra}
                <p style="color: #666; font-size: 12px; margin-top: 40px;">
                    Manage your reservations at {Config.APP_URL}
                </p>
            </body>
        </html>
        """
        plain_content = (
            f"{heading}\n\n"
            f"Court: {booking_details['court']}\n"
            f"Date: {booking_details['date']}\n"
            f"Time: {booking_details['time']}\n"
            f"Status: {booking_details['status']}\n"
            f"Price: {booking_details['price']}\n"
        )

        return self.send_email(to_email, subject, html_content, plain_content)
