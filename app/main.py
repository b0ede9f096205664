import atexit
import os
from flask import Flask, jsonify
from apscheduler.schedulers.background import BackgroundScheduler
from config.config import config
from app.database import init_db
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config_name=None):
    """Application factory"""
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app_config = config.get(config_name, config['default'])

    app = Flask(__name__)
    app.config.from_object(app_config)

    init_db()

    from app.routes import courts, reservations
    app.register_blueprint(courts.bp, url_prefix='/api/courts')
    app.register_blueprint(reservations.bp, url_prefix='/api/reservations')

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'}), 200

    @app.route('/api')
    def api_index():
        return jsonify({
            'availability': 'GET /api/courts/<court_id>/availability?date=YYYY-MM-DD',
            'calendar': 'GET|POST|PUT /api/courts/<court_id>/calendar',
            'blocked_dates': 'POST /api/courts/<court_id>/calendar/blocked-dates, '
                             'DELETE /api/courts/<court_id>/calendar/blocked-dates/<date>',
            'reservations': 'GET|POST /api/reservations',
            'court_reservations': 'GET /api/reservations/court/<court_id>',
            'reservation': 'GET /api/reservations/<id>',
            'cancel': 'POST /api/reservations/<id>/cancel',
            'status': 'PUT /api/reservations/<id>/status'
        }), 200

    interval = app_config.AUTO_COMPLETE_INTERVAL_MINUTES
    if interval and not app.config.get('TESTING'):
        _start_completion_scheduler(interval)

    logger.info(f"CourtSlot started with '{config_name}' configuration")
    return app


def _start_completion_scheduler(interval_minutes: int):
    """Periodically move finished reservations to completed"""
    from app.routes.reservations import reservation_service

    def complete_finished():
        try:
            reservation_service.complete_past_reservations()
        except Exception as e:
            logger.error(f"Error completing past reservations: {str(e)}")

    scheduler = BackgroundScheduler()
    scheduler.add_job(complete_finished, 'interval', minutes=interval_minutes, id='complete_reservations')
    scheduler.start()
    atexit.register(lambda: scheduler.shutdown())
    logger.info(f"Completion job scheduled every {interval_minutes} minutes")
