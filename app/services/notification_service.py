from typing import Dict, Optional
from app.integrations import TwilioClient, SendGridClient
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Best-effort notifications sent after a reservation change has been committed.

    Every public method swallows and logs delivery failures: the reservation
    outcome never depends on email or SMS delivery.
    """

    def __init__(self):
        self.twilio = TwilioClient()
        self.sendgrid = SendGridClient()

    def send_reservation_created(self, reservation: Dict):
        """Confirm a new reservation to the booker and alert the court manager"""
        try:
            details = self._booking_details(reservation)
            heading = ("Booking Confirmed" if reservation['status'] == 'confirmed'
                       else "Booking Request Received")
            footer = (None if reservation['status'] == 'confirmed'
                      else "The court manager will confirm your booking shortly.")

            subject = reservation.get('subject_details') or {}
            if subject.get('email'):
                self.sendgrid.send_reservation_email(
                    subject['email'], subject.get('name') or 'there', heading, details, footer
                )
            if subject.get('phone'):
                self.twilio.send_booking_reminder(subject['phone'], details['court'],
                                                  details['date'], details['time'])

            self._notify_manager(reservation, "New Booking", details)
            logger.info(f"Sent creation notifications for reservation {reservation['id']}")

        except Exception as e:
            logger.error(f"Error sending reservation notification: {str(e)}")

    def send_reservation_cancelled(self, reservation: Dict):
        try:
            details = self._booking_details(reservation)
            subject = reservation.get('subject_details') or {}
            if subject.get('email'):
                self.sendgrid.send_reservation_email(
                    subject['email'], subject.get('name') or 'there', "Booking Cancelled", details
                )

            self._notify_manager(reservation, "Booking Cancelled", details)
            logger.info(f"Sent cancellation notifications for reservation {reservation['id']}")

        except Exception as e:
            logger.error(f"Error sending cancellation notification: {str(e)}")

    def send_status_changed(self, reservation: Dict):
        """Tell the booker an operator changed the reservation status"""
        try:
            details = self._booking_details(reservation)
            subject = reservation.get('subject_details') or {}
            if subject.get('email'):
                self.sendgrid.send_reservation_email(
                    subject['email'], subject.get('name') or 'there',
                    f"Booking {reservation['status'].title()}", details
                )
            logger.info(f"Sent status notification for reservation {reservation['id']}")

        except Exception as e:
            logger.error(f"Error sending status notification: {str(e)}")

    def _notify_manager(self, reservation: Dict, heading: str, details: Dict):
        company = reservation.get('company_details') or {}
        if company.get('manager_email'):
            self.sendgrid.send_reservation_email(
                company['manager_email'], company.get('manager_name') or 'manager', heading, details
            )

    def _booking_details(self, reservation: Dict) -> Dict:
        court = reservation.get('court_details') or {}
        return {
            'court': court.get('name') or f"Court {reservation['court_id']}",
            'date': reservation['date'],
            'time': f"{reservation['start_time']}-{reservation['end_time']}",
            'status': reservation['status'],
            'price': self._format_price(reservation.get('price')),
            'reason': reservation.get('cancellation_reason')
        }

    @staticmethod
    def _format_price(price: Optional[float]) -> str:
        if price is None:
            return '-'
        return f"{price:g} {Config.CURRENCY_LABEL}"
