"""
Bearer-token authentication shared by the HTTP routes and the socket handlers
"""
import datetime
import logging
from functools import wraps

import jwt
from flask import current_app, jsonify, request

from gatedrop.extensions import db
from gatedrop.models import User

logger = logging.getLogger(__name__)


def generate_token(user_id):
    """Generate JWT token for user"""
    payload = {
        'user_id': user_id,
        'exp': datetime.datetime.now(datetime.timezone.utc) + current_app.config['JWT_EXPIRY'],
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def verify_token(token):
    """Verify JWT token and return user_id"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
        return payload.get('user_id')
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = verify_token(bearer_token())
        if not user_id:
            return jsonify({'error': 'Unauthorized', 'code': 'unauthenticated'}), 401
        if not db.session.get(User, user_id):
            logger.info("Token presented for unknown user %s", user_id)
            return jsonify({'error': 'Unauthorized', 'code': 'unauthenticated'}), 401
        return f(user_id=user_id, *args, **kwargs)
    return decorated_function
