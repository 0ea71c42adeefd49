# -*- coding: utf-8 -*-
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from functools import wraps
from PIL import UnidentifiedImageError
from sqlalchemy.exc import SQLAlchemyError
from mandi import db
from mandi.forms.forms import ListingForm, BookingRequestForm, MessageForm, ReviewForm
from mandi.models.equipment import REQUESTS, RequestStatus
from mandi.services.booking_service import BookingCoordinator
from mandi.services.chat_service import NegotiationChannel
from mandi.services.errors import MarketplaceError, InvalidActor, InvalidListing
from mandi.services.listing_service import ListingService
from mandi.services.log_service import log_event
from mandi.services.notification_service import notify_requester
from mandi.services.review_service import ReviewService
from mandi.services.store import NotFound, get_store
from mandi.utils import save_listing_image

marketplace = Blueprint('marketplace', __name__)

def current_identity():
    return current_user.identity if current_user.is_authenticated else None

# --- DECORADOR: TRADUZ ERROS DO MARKETPLACE EM RESPOSTAS JSON ---
def marketplace_errors(event_type):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except MarketplaceError as e:
                log_event(event_type, "FAILURE", {"error": e.code, **kwargs, **e.details},
                          actor=current_identity(), ip_address=request.remote_addr)
                return jsonify(e.to_dict()), e.http_status
            except NotFound:
                return jsonify({'success': False, 'error': 'not_found', 'message': 'Item not found.'}), 404
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Erro no banco em '{event_type}': {e}")
                return jsonify({'success': False, 'error': 'store_unavailable',
                                'message': 'The marketplace is temporarily unavailable. Please try again.'}), 503
        return decorated_function
    return decorator

def form_error_response(form, error, message):
    return jsonify({'success': False, 'error': error, 'message': message, 'errors': form.errors}), 400

def other_party(req, identity):
    if identity == req['owner_id']:
        return req['requester_name']
    return req['owner_name']

# --- ANÚNCIOS ---
@marketplace.route('/equipment', methods=['GET'])
@marketplace_errors("List Equipment")
def list_equipment():
    store = get_store()
    search = request.args.get('q')
    listings = ListingService(store)
    reviews = ReviewService(store)

    if current_user.is_authenticated:
        mine, market = listings.split_for(current_user.identity, search=search)
    else:
        mine, market = [], listings.list(search=search)

    for item in market:
        item['owner_rating'] = reviews.rating_for(item['owner_id'])

    return jsonify({'market': market, 'mine': mine})

@marketplace.route('/equipment', methods=['POST'])
@login_required
@marketplace_errors("Post Listing")
def post_listing():
    form = ListingForm()
    if not form.validate_on_submit():
        return form_error_response(form, 'invalid_listing', 'Please check the listing details.')

    try:
        image_url = save_listing_image(form.image.data, current_user.identity)
    except (ValueError, UnidentifiedImageError) as e:
        raise InvalidListing(f'Could not read the photo: {e}')

    listing = ListingService(get_store()).create(current_user.identity, current_user.display_name, {
        'name': form.name.data,
        'offer_type': form.offer_type.data,
        'price': form.price.data,
        'location': form.location.data,
        'description': form.description.data,
        'image_url': image_url,
    })
    log_event("Post Listing", "SUCCESS", {"listing_id": listing['id'], "name": listing['name']},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': 'Listed successfully!', 'listing': listing}), 201

@marketplace.route('/equipment/<int:listing_id>', methods=['DELETE'])
@login_required
@marketplace_errors("Delete Listing")
def delete_listing(listing_id):
    ListingService(get_store()).delete(listing_id, current_user.identity)
    log_event("Delete Listing", "SUCCESS", {"listing_id": listing_id},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': 'Listing deleted'})

# --- PEDIDOS DE RESERVA ---
@marketplace.route('/equipment/<int:listing_id>/book', methods=['POST'])
@login_required
@marketplace_errors("Booking Request")
def request_booking(listing_id):
    form = BookingRequestForm()
    if not form.validate_on_submit():
        return form_error_response(form, 'invalid_booking_dates', 'Please choose a valid booking period.')

    booking = BookingCoordinator(get_store()).request_booking(
        listing_id,
        current_user.identity,
        requester_name=current_user.display_name,
        start_date=form.start_date.data,
        end_date=form.end_date.data,
    )
    log_event("Booking Request", "SUCCESS", {"listing_id": listing_id, "request_id": booking['id']},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': 'Request sent to owner!', 'request': booking}), 201

@marketplace.route('/bookings', methods=['GET'])
@login_required
@marketplace_errors("My Bookings")
def my_bookings():
    store = get_store()
    identity = current_user.identity
    newest_first = ('-created_at', '-id')

    sent = store.query(REQUESTS, order_by=newest_first, requester_id=identity)
    received = store.query(REQUESTS, order_by=newest_first, owner_id=identity)
    reviewed = ReviewService(store).reviewed_request_ids(identity)

    for req in sent + received:
        req['chat_open'] = req['status'] == RequestStatus.APPROVED
        req['reviewed'] = req['id'] in reviewed

    return jsonify({
        'sent': sent,
        'received': received,
        'pending_count': sum(1 for req in received if req['status'] == RequestStatus.PENDING),
    })

@marketplace.route('/bookings/<int:request_id>/accept', methods=['POST'])
@login_required
@marketplace_errors("Accept Request")
def accept_request(request_id):
    result = BookingCoordinator(get_store()).accept_request(request_id, actor=current_user.identity)
    notify_requester(result.request)

    log_event("Accept Request", "SUCCESS",
              {"request_id": request_id, "listing_status": result.listing_status,
               "swept": result.swept, "sweep_failed": result.failed},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({
        'success': True,
        'message': 'Request Approved',
        'request': result.request,
        'listing_status': result.listing_status,
        'swept': result.swept,
    })

@marketplace.route('/bookings/<int:request_id>/reject', methods=['POST'])
@login_required
@marketplace_errors("Reject Request")
def reject_request(request_id):
    store = get_store()
    was_pending = store.read(REQUESTS, request_id)['status'] == RequestStatus.PENDING
    rejected = BookingCoordinator(store).reject_request(request_id, actor=current_user.identity)
    if was_pending:
        notify_requester(rejected)

    log_event("Reject Request", "SUCCESS", {"request_id": request_id},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': 'Request Rejected', 'request': rejected})

# --- CHAT DE NEGOCIAÇÃO ---
@marketplace.route('/bookings/<int:request_id>/chat', methods=['GET'])
@login_required
@marketplace_errors("Chat Eligibility")
def chat_eligibility(request_id):
    store = get_store()
    req = store.read(REQUESTS, request_id)
    if current_user.identity not in (req['owner_id'], req['requester_id']):
        raise InvalidActor(request_id=request_id)

    eligible = BookingCoordinator(store).derive_chat_eligibility(request_id)
    return jsonify({'request_id': request_id, 'eligible': eligible,
                    'with': other_party(req, current_user.identity)})

@marketplace.route('/bookings/<int:request_id>/messages', methods=['GET'])
@login_required
@marketplace_errors("Read Messages")
def read_messages(request_id):
    messages = NegotiationChannel(get_store()).messages(request_id, current_user.identity)
    return jsonify({'request_id': request_id, 'messages': messages})

@marketplace.route('/bookings/<int:request_id>/messages', methods=['POST'])
@login_required
@marketplace_errors("Send Message")
def send_message(request_id):
    form = MessageForm()
    if not form.validate_on_submit():
        return form_error_response(form, 'invalid_message', 'Message is too long.')

    message = NegotiationChannel(get_store()).post(request_id, current_user.identity, form.text.data)
    return jsonify({'success': True, 'message': message}), 201

# --- AVALIAÇÕES ---
@marketplace.route('/bookings/<int:request_id>/review', methods=['POST'])
@login_required
@marketplace_errors("Submit Review")
def submit_review(request_id):
    form = ReviewForm()
    if not form.validate_on_submit():
        return form_error_response(form, 'invalid_review', 'Rating must be between 1 and 5.')

    review = ReviewService(get_store()).submit(request_id, current_user.identity,
                                               form.rating.data, form.comment.data)
    log_event("Submit Review", "SUCCESS", {"request_id": request_id, "rating": review['rating']},
              actor=current_user.identity, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': 'Review submitted!', 'review': review}), 201

@marketplace.route('/owners/<path:owner_id>/rating', methods=['GET'])
@marketplace_errors("Owner Rating")
def owner_rating(owner_id):
    return jsonify({'owner_id': owner_id, 'rating': ReviewService(get_store()).rating_for(owner_id)})
