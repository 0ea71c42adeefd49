from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from functools import wraps
from mandi.models.equipment import REQUESTS
from mandi.models.user import ApiLog
from mandi.routes.marketplace import marketplace_errors
from mandi.services.booking_service import BookingCoordinator
from mandi.services.listing_service import ListingService
from mandi.services.log_service import log_event
from mandi.services.store import get_store

admin = Blueprint('admin', __name__)

# --- Decorador Admin Required ---
def admin_required(f):
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'success': False, 'error': 'admin_only', 'message': 'Admins only.'}), 403
        return f(*args, **kwargs)
    return decorated_function

# --- Anúncios ---
@admin.route('/equipment')
@admin_required
@marketplace_errors("Admin List Equipment")
def equipment_list():
    filters = {}
    if request.args.get('status'):
        filters['status'] = request.args['status']
    return jsonify({'listings': ListingService(get_store()).list(search=request.args.get('q'), **filters)})

@admin.route('/equipment/<int:listing_id>', methods=['DELETE'])
@admin_required
@marketplace_errors("Admin Delete Listing")
def delete_listing(listing_id):
    listing = ListingService(get_store()).delete(listing_id, current_user.identity, is_admin=True)
    log_event("Admin Delete Listing", "SUCCESS", {"listing_id": listing_id, "owner_id": listing['owner_id']},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': f'Listing "{listing["name"]}" deleted.'})

@admin.route('/equipment/<int:listing_id>/reconcile', methods=['POST'])
@admin_required
@marketplace_errors("Admin Reconcile")
def reconcile_listing(listing_id):
    result = BookingCoordinator(get_store()).reconcile_listing(listing_id)
    log_event("Admin Reconcile", "SUCCESS", {"listing_id": listing_id, "swept": result.swept, "failed": result.failed},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': not result.failed, 'swept': result.swept, 'failed': result.failed})

# --- Pedidos ---
@admin.route('/requests')
@admin_required
@marketplace_errors("Admin List Requests")
def requests_list():
    filters = {}
    if request.args.get('listing_id', type=int):
        filters['listing_id'] = request.args.get('listing_id', type=int)
    if request.args.get('status'):
        filters['status'] = request.args['status']
    return jsonify({'requests': get_store().query(REQUESTS, order_by=('-created_at', '-id'), **filters)})

# --- Trilha de auditoria ---
@admin.route('/logs')
@admin_required
def logs_list():
    page = request.args.get('page', 1, type=int)
    logs = ApiLog.query.order_by(ApiLog.timestamp.desc(), ApiLog.id.desc()).paginate(page=page, per_page=25, error_out=False)
    return jsonify({'logs': [log.to_dict() for log in logs.items], 'page': logs.page, 'pages': logs.pages, 'total': logs.total})
