"""
User profile routes
"""
from flask import Blueprint, jsonify, request

from gatedrop.auth import require_auth
from gatedrop.errors import ValidationError
from gatedrop.extensions import db
from gatedrop.models import User
from gatedrop.utils import sanitize_string, validate_ifsc, validate_upi_id

users_bp = Blueprint('users', __name__, url_prefix='/api/users')

# Free-text fields a user may change on their own profile
PROFILE_TEXT_FIELDS = {
    'name': 255,
    'college_id': 100,
    'profile_image_url': 2048,
}


def _bank_account(value):
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError('bank_account must be an object')

    account_number = str(value.get('account_number') or '').strip()
    ifsc = str(value.get('ifsc') or '').strip().upper()
    beneficiary_name = str(value.get('beneficiary_name') or '').strip()

    if not account_number.isdigit() or not 6 <= len(account_number) <= 20:
        raise ValidationError('bank_account.account_number must be 6-20 digits')
    if not validate_ifsc(ifsc):
        raise ValidationError('bank_account.ifsc is not a valid IFSC code')
    if not beneficiary_name:
        raise ValidationError('bank_account.beneficiary_name is required')

    return {
        'account_number': account_number,
        'ifsc': ifsc,
        'beneficiary_name': sanitize_string(beneficiary_name),
    }


@users_bp.route('/<user_id_param>', methods=['GET'])
@require_auth
def get_user(user_id, user_id_param):
    """Public reputation profile of any user"""
    user = User.get_or_404(user_id_param, 'User not found')
    return jsonify({'success': True, 'user': user.public_profile()}), 200


@users_bp.route('/profile', methods=['PATCH'])
@require_auth
def update_profile(user_id):
    """
    Update own profile
    PATCH /api/users/profile
    Body: any of {
        "name", "college_id", "profile_image_url",
        "upi_id": "name@bank",
        "bank_account": {"account_number", "ifsc", "beneficiary_name"}
    }
    Wallet and reputation fields are ignored.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    changes = {}
    for field, max_length in PROFILE_TEXT_FIELDS.items():
        if field not in data:
            continue
        value = data[field]
        if not isinstance(value, str) or not value.strip():
            raise ValidationError('{} must be a non-empty string'.format(field))
        if len(value.strip()) > max_length:
            raise ValidationError('{} must be at most {} characters'.format(field, max_length))
        changes[field] = sanitize_string(value.strip())

    if 'upi_id' in data:
        upi_id = data['upi_id']
        if upi_id is not None and (not isinstance(upi_id, str) or not validate_upi_id(upi_id.strip())):
            raise ValidationError('upi_id is not a valid UPI id')
        changes['upi_id'] = upi_id.strip() if upi_id else None

    if 'bank_account' in data:
        changes['bank_account'] = _bank_account(data['bank_account'])

    user = User.get_or_404(user_id, 'User not found')
    for field, value in changes.items():
        setattr(user, field, value)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return jsonify({'success': True, 'user': user.to_dict(include_private=True)}), 200
