import datetime
import logging

from mandi.models.equipment import LISTINGS, ListingStatus, OfferType
from mandi.services.errors import InvalidActor, InvalidListing, InvalidStatusTransition

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ('name', 'location', 'description')


class ListingService:
    """Anúncios de equipamentos: cadastro, listagem, status e exclusão."""

    def __init__(self, store):
        self.store = store

    def create(self, owner_id, owner_name, fields) -> dict:
        name = (fields.get('name') or '').strip()
        offer_type = fields.get('offer_type') or OfferType.RENT
        price = fields.get('price') or 0

        if not name:
            raise InvalidListing('Please give the equipment a name.')
        if offer_type not in OfferType.ALL:
            raise InvalidListing(f'Offer type must be one of: {", ".join(OfferType.ALL)}.')
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise InvalidListing('Price must be a number.')
        if price < 0:
            raise InvalidListing('Price cannot be negative.')

        listing = self.store.add(LISTINGS, {
            'owner_id': owner_id,
            'owner_name': owner_name or 'Farmer',
            'name': name,
            'offer_type': offer_type,
            'price': price,
            'location': fields.get('location'),
            'description': fields.get('description'),
            'image_url': fields.get('image_url'),
            'status': ListingStatus.AVAILABLE,
            'created_at': datetime.datetime.utcnow(),
        })
        logger.info("Anúncio %s criado por %s", listing['id'], owner_id)
        return listing

    def list(self, search=None, **filters):
        listings = self.store.query(LISTINGS, order_by=('-created_at', '-id'), **filters)
        if search:
            term = search.strip().lower()
            listings = [item for item in listings
                        if any(term in (item.get(key) or '').lower() for key in SEARCH_FIELDS)]
        return listings

    def split_for(self, identity, search=None):
        """Separa os anúncios do usuário ("mine") dos demais ("market")."""
        listings = self.list(search=search)
        mine = [item for item in listings if item['owner_id'] == identity]
        market = [item for item in listings if item['owner_id'] != identity]
        return mine, market

    def set_status(self, listing_id, new_status):
        listing = self.store.read(LISTINGS, listing_id)
        if listing['status'] == new_status:
            return listing
        if new_status not in ListingStatus.LOCKED:
            raise InvalidStatusTransition(listing_id=listing_id, status=listing['status'])
        changed = self.store.conditional_write(
            LISTINGS, listing_id,
            {'status': ListingStatus.AVAILABLE},
            {'status': new_status},
        )
        if not changed:
            raise InvalidStatusTransition(listing_id=listing_id)
        listing['status'] = new_status
        return listing

    def delete(self, listing_id, actor, is_admin=False):
        listing = self.store.read(LISTINGS, listing_id)
        if not is_admin and actor != listing['owner_id']:
            raise InvalidActor('Only the owner can delete this listing.')
        self.store.delete(LISTINGS, listing_id)
        logger.info("Anúncio %s removido por %s%s", listing_id, actor, ' (admin)' if is_admin else '')
        return listing
