"""
Authentication routes: email/password signup and login issuing bearer tokens
"""
import logging

from flask import Blueprint, jsonify, request
from sqlalchemy import or_

from gatedrop.auth import generate_token, require_auth
from gatedrop.extensions import db, limiter
from gatedrop.models import User
from gatedrop.utils import sanitize_string, validate_email, validate_phone

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

MIN_PASSWORD_LENGTH = 8


@auth_bp.route('/signup', methods=['POST'])
@limiter.limit("10 per minute")
def signup():
    """
    Register a new user
    POST /api/auth/signup
    Body: {
        "name": "Asha",
        "email": "asha@college.edu",
        "phone": "9876543210",
        "password": "password123",
        "college_id": "CS-2021-044"   (optional)
    }
    """
    data = request.get_json(silent=True) or {}

    required_fields = ['name', 'email', 'phone', 'password']
    missing = [f for f in required_fields if not str(data.get(f) or '').strip()]
    if missing:
        return jsonify({'error': 'Missing required fields: {}'.format(', '.join(missing))}), 400

    email = str(data['email']).lower().strip()
    phone = str(data['phone']).strip()
    password = str(data['password'])

    if not validate_email(email):
        return jsonify({'error': 'Invalid email address'}), 400
    if not validate_phone(phone):
        return jsonify({'error': 'Invalid phone number'}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': 'Password must be at least {} characters'.format(MIN_PASSWORD_LENGTH)}), 400

    existing = User.query.filter(or_(User.email == email, User.phone == phone)).first()
    if existing:
        return jsonify({'error': 'An account with this email or phone already exists'}), 409

    college_id = data.get('college_id')
    user = User(
        name=sanitize_string(str(data['name']).strip()),
        email=email,
        phone=phone,
        college_id=sanitize_string(college_id.strip()) if isinstance(college_id, str) and college_id.strip() else None,
    )
    user.set_password(password)

    try:
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("New user signed up: %s", user.id)
    return jsonify({
        'success': True,
        'token': generate_token(user.id),
        'user': user.to_dict(include_private=True),
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """
    Login with email and password
    POST /api/auth/login
    """
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').lower().strip()
    password = str(data.get('password') or '')

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({'error': 'Invalid credentials'}), 401

    return jsonify({
        'success': True,
        'token': generate_token(user.id),
        'user': user.to_dict(include_private=True),
    }), 200


@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user(user_id):
    user = User.get_or_404(user_id, 'User not found')
    return jsonify({'success': True, 'user': user.to_dict(include_private=True)}), 200
