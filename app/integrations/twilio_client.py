from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from typing import Optional, Dict
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class TwilioClient:
    """Wrapper for Twilio SMS operations"""

    def __init__(self):
        self.account_sid = Config.TWILIO_ACCOUNT_SID
        self.auth_token = Config.TWILIO_AUTH_TOKEN
        self.phone_number = Config.TWILIO_PHONE_NUMBER

        if self.account_sid and self.auth_token:
            self.client = Client(self.account_sid, self.auth_token)
        else:
            self.client = None
            logger.warning("Twilio credentials not configured")

    def send_sms(self, to_number: str, message: str) -> Optional[Dict]:
        """Send SMS message"""
        if not self.client:
            logger.error("Twilio client not initialized")
            return None

        try:
            sent = self.client.messages.create(body=message, from_=self.phone_number, to=to_number)
            return {
                'sid': sent.sid,
                'status': sent.status,
                'to': sent.to
            }
        except TwilioRestException as e:
            logger.error(f"Error sending SMS to {to_number}: {str(e)}")
            return None

    def send_booking_reminder(self, to_number: str, court_name: str, day: str, time_range: str) -> Optional[Dict]:
        """Short SMS summary of a reservation"""
        message = f"CourtSlot: {court_name} on {day}, {time_range}. Reply STOP to opt out."
        return self.send_sms(to_number, message)
