import os
import tempfile

# Point the engine at a throwaway SQLite file before any app module reads Config
_db_dir = tempfile.mkdtemp(prefix='courtslot-tests-')
os.environ['DATABASE_URL'] = 'sqlite:///' + os.path.join(_db_dir, 'test_courtslot.db')
os.environ.setdefault('SENDGRID_API_KEY', '')
os.environ.setdefault('TWILIO_ACCOUNT_SID', '')
