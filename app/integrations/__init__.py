from .twilio_client import TwilioClient
from .sendgrid_client import SendGridClient

__all__ = ['TwilioClient', 'SendGridClient']
