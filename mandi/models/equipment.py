from mandi import db
import datetime

# --- Valores de status e tipo de oferta ---
class OfferType:
    RENT = 'Rent'
    SALE = 'Sale'
    ALL = (RENT, SALE)

class ListingStatus:
    AVAILABLE = 'Available'
    RENTED = 'Rented'
    SOLD = 'Sold'
    LOCKED = (RENTED, SOLD)

    @staticmethod
    def locked_for(offer_type):
        """Status final do anúncio quando um pedido é aceito."""
        return ListingStatus.RENTED if offer_type == OfferType.RENT else ListingStatus.SOLD

class RequestStatus:
    PENDING = 'Pending'
    APPROVED = 'Approved'
    REJECTED = 'Rejected'
    ITEM_UNAVAILABLE = 'Item Unavailable'
    TERMINAL = (APPROVED, REJECTED, ITEM_UNAVAILABLE)

# Nomes das coleções usados pelo DocumentStore
LISTINGS = 'equipment'
REQUESTS = 'equipment_requests'
MESSAGES = 'equipment_chats'
REVIEWS = 'reviews'

class DocumentMixin:
    """Expõe a linha como um documento (dict) para a camada de serviços."""

    def to_dict(self):
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}

class Listing(DocumentMixin, db.Model):
    __tablename__ = LISTINGS
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(150), nullable=False, index=True)
    owner_name = db.Column(db.String(150))
    name = db.Column(db.String(150), nullable=False)
    offer_type = db.Column(db.String(10), nullable=False, default=OfferType.RENT)
    price = db.Column(db.Float, nullable=False, default=0.0)
    location = db.Column(db.String(200))
    description = db.Column(db.Text)
    image_url = db.Column(db.String(255))
    status = db.Column(db.String(20), nullable=False, default=ListingStatus.AVAILABLE, index=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, index=True)

    def __repr__(self):
        return f"Listing('{self.name}', '{self.offer_type}', '{self.status}')"

class BookingRequest(DocumentMixin, db.Model):
    __tablename__ = REQUESTS
    id = db.Column(db.Integer, primary_key=True)
    listing_id = db.Column(db.Integer, nullable=False, index=True)
    # Cópia dos dados do anúncio no momento do pedido; não acompanha edições posteriores
    listing_name = db.Column(db.String(150))
    listing_image = db.Column(db.String(255))
    owner_id = db.Column(db.String(150), nullable=False, index=True)
    owner_name = db.Column(db.String(150))
    requester_id = db.Column(db.String(150), nullable=False, index=True)
    requester_name = db.Column(db.String(150))
    offer_type = db.Column(db.String(10), nullable=False)
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    status = db.Column(db.String(20), nullable=False, default=RequestStatus.PENDING, index=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, index=True)

    def __repr__(self):
        return f"BookingRequest(Listing: {self.listing_id}, Requester: {self.requester_id}, Status: {self.status})"

class NegotiationMessage(DocumentMixin, db.Model):
    __tablename__ = MESSAGES
    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, nullable=False, index=True)
    sender_id = db.Column(db.String(150), nullable=False)
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, index=True)

class Review(DocumentMixin, db.Model):
    __tablename__ = REVIEWS
    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, nullable=False, index=True)
    reviewer_id = db.Column(db.String(150), nullable=False)
    target_id = db.Column(db.String(150), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    __table_args__ = (db.UniqueConstraint('request_id', 'reviewer_id', name='_request_reviewer_uc'),)
