from datetime import datetime, timedelta
from jose import jwt, JWTError
from config.config import Config

# JWT settings
SECRET_KEY = Config.SECRET_KEY
ALGORITHM = "HS256"

# Tokens are issued by the account service; roles recognised by the scheduling API
ROLES = ('player', 'manager', 'admin')
OPERATOR_ROLES = ('manager', 'admin')


def generate_token(data: dict, expires_delta: timedelta = None) -> str:
    """Generate JWT token carrying user_id, role and contact claims"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(token: str) -> dict:
    """Verify and decode JWT token"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if not payload.get('user_id') or payload.get('role') not in ROLES:
        return None
    return payload


def is_operator(current_user: dict) -> bool:
    """Managers and admins may run calendars and change reservation status"""
    return bool(current_user) and current_user.get('role') in OPERATOR_ROLES


def can_manage_company(current_user: dict, company_id) -> bool:
    """Admins manage every court; managers only their own company's courts"""
    if not is_operator(current_user):
        return False
    if current_user.get('role') == 'admin':
        return True
    if not company_id or not current_user.get('company_id'):
        return False
    return str(current_user['company_id']) == str(company_id)
