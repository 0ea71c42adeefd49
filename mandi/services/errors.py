"""Erros esperados do marketplace.

Cada erro é uma condição recuperável: as rotas devolvem ``code`` e ``message``
para quem iniciou a ação e registram o evento no ApiLog.
"""


class MarketplaceError(Exception):
    code = 'marketplace_error'
    message = 'The action could not be completed.'
    http_status = 400

    def __init__(self, message=None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self):
        return {'success': False, 'error': self.code, 'message': self.message}


# --- Núcleo: pedidos de reserva ---
class ListingUnavailable(MarketplaceError):
    code = 'listing_unavailable'
    message = 'This item is no longer available.'
    http_status = 409


class InvalidActor(MarketplaceError):
    code = 'invalid_actor'
    message = 'You are not allowed to do this on this item.'
    http_status = 403


class StaleRequest(MarketplaceError):
    code = 'stale_request'
    message = 'This request has already been handled.'
    http_status = 409


class ListingAlreadyLocked(MarketplaceError):
    code = 'listing_already_locked'
    message = 'This item was just booked by someone else.'
    http_status = 409


class InvalidBookingDates(MarketplaceError):
    code = 'invalid_booking_dates'
    message = 'Please choose a valid booking period.'


# --- Anúncios ---
class InvalidListing(MarketplaceError):
    code = 'invalid_listing'
    message = 'The listing details are not valid.'


class InvalidStatusTransition(MarketplaceError):
    code = 'invalid_status_transition'
    message = 'A booked or sold item cannot change its status.'
    http_status = 409


# --- Chat e avaliações ---
class ChatUnavailable(MarketplaceError):
    code = 'chat_unavailable'
    message = 'Chat opens once the owner approves the request.'
    http_status = 403


class EmptyMessage(MarketplaceError):
    code = 'empty_message'
    message = 'Message cannot be empty.'


class ReviewNotAllowed(MarketplaceError):
    code = 'review_not_allowed'
    message = 'Only approved deals can be reviewed.'
    http_status = 409


class DuplicateReview(MarketplaceError):
    code = 'duplicate_review'
    message = 'You have already reviewed this deal.'
    http_status = 409
