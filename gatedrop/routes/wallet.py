"""
Wallet routes
"""
import logging

from flask import Blueprint, jsonify, request

from gatedrop.auth import require_auth
from gatedrop.errors import ValidationError
from gatedrop.extensions import db, limiter
from gatedrop.fanout import BALANCE_CHANGED, get_fanout
from gatedrop.services import Ledger, get_policy
from gatedrop.utils import to_money

logger = logging.getLogger(__name__)

wallet_bp = Blueprint('wallet', __name__, url_prefix='/api/wallet')


@wallet_bp.route('/balance', methods=['GET'])
@require_auth
def get_balance(user_id):
    balance = Ledger(db.session, get_policy()).balance(user_id)
    return jsonify({'success': True, 'balance': float(balance)}), 200


@wallet_bp.route('/cashout', methods=['POST'])
@limiter.limit("5 per minute")
@require_auth
def cashout(user_id):
    """
    Withdraw from the wallet to the saved payout destination
    POST /api/wallet/cashout
    Body: {"amount": 150}
    """
    data = request.get_json(silent=True) or {}
    amount = to_money(data.get('amount'))
    if amount is None:
        raise ValidationError('amount must be a number')

    ledger = Ledger(db.session, get_policy())
    try:
        new_balance = ledger.cashout(user_id, amount)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    get_fanout().broadcast(BALANCE_CHANGED, {'user_id': user_id, 'new_balance': float(new_balance)})
    logger.info("Cashout of %.2f processed for user %s", amount, user_id)

    return jsonify({
        'success': True,
        'message': 'Cashout request processed',
        'new_balance': float(new_balance),
    }), 200
