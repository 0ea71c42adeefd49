# mandi/models/__init__.py
from mandi.models.user import User, ApiLog
from mandi.models.equipment import (
    Listing, BookingRequest, NegotiationMessage, Review,
    OfferType, ListingStatus, RequestStatus,
    LISTINGS, REQUESTS, MESSAGES, REVIEWS,
)

# Coleção do DocumentStore -> modelo SQLAlchemy
COLLECTIONS = {
    LISTINGS: Listing,
    REQUESTS: BookingRequest,
    MESSAGES: NegotiationMessage,
    REVIEWS: Review,
}
