import pytest

from mandi.models.equipment import LISTINGS, ListingStatus
from mandi.services.errors import InvalidActor, InvalidListing, InvalidStatusTransition
from mandi.services.store import NotFound


def test_new_listing_starts_available(listings):
    listing = listings.create('owner@kisan.app', 'Ramesh', {'name': ' Power Tiller ', 'offer_type': 'Sale', 'price': '42000'})

    assert listing['status'] == ListingStatus.AVAILABLE
    assert listing['name'] == 'Power Tiller'
    assert listing['price'] == 42000.0
    assert listing['owner_name'] == 'Ramesh'


@pytest.mark.parametrize('fields', [
    {'name': '', 'offer_type': 'Rent', 'price': 10},
    {'name': 'Tractor', 'offer_type': 'Lease', 'price': 10},
    {'name': 'Tractor', 'offer_type': 'Rent', 'price': -5},
    {'name': 'Tractor', 'offer_type': 'Rent', 'price': 'cheap'},
])
def test_invalid_listing_is_refused(listings, store, fields):
    with pytest.raises(InvalidListing):
        listings.create('owner@kisan.app', 'Ramesh', fields)
    assert store.query(LISTINGS) == []


def test_search_matches_name_location_and_description(listings, make_listing):
    make_listing(name='Mahindra Tractor', location='Nashik')
    make_listing(name='Sprayer', location='Pune', description='Battery operated')
    make_listing(name='Harvester', location='Ludhiana')

    assert [item['name'] for item in listings.list(search='tractor')] == ['Mahindra Tractor']
    assert [item['name'] for item in listings.list(search='PUNE')] == ['Sprayer']
    assert [item['name'] for item in listings.list(search='battery')] == ['Sprayer']
    assert len(listings.list()) == 3


def test_listings_are_newest_first(listings, make_listing):
    first = make_listing(name='First')
    second = make_listing(name='Second')

    assert [item['id'] for item in listings.list()] == [second['id'], first['id']]


def test_split_for_separates_own_listings(listings, make_listing):
    mine = make_listing(owner='me@kisan.app', name='Mine')
    theirs = make_listing(owner='them@kisan.app', name='Theirs')

    own, market = listings.split_for('me@kisan.app')

    assert [item['id'] for item in own] == [mine['id']]
    assert [item['id'] for item in market] == [theirs['id']]


def test_set_status_only_moves_out_of_available(listings, make_listing, store):
    listing = make_listing()

    assert listings.set_status(listing['id'], ListingStatus.AVAILABLE)['status'] == ListingStatus.AVAILABLE
    assert listings.set_status(listing['id'], ListingStatus.SOLD)['status'] == ListingStatus.SOLD
    assert listings.set_status(listing['id'], ListingStatus.SOLD)['status'] == ListingStatus.SOLD

    with pytest.raises(InvalidStatusTransition):
        listings.set_status(listing['id'], ListingStatus.RENTED)
    with pytest.raises(InvalidStatusTransition):
        listings.set_status(listing['id'], ListingStatus.AVAILABLE)
    assert store.read(LISTINGS, listing['id'])['status'] == ListingStatus.SOLD


def test_only_owner_or_admin_can_delete(listings, make_listing, store):
    listing = make_listing(owner='owner@kisan.app')
    other = make_listing(owner='owner@kisan.app', name='Plough')

    with pytest.raises(InvalidActor):
        listings.delete(listing['id'], 'neighbour@kisan.app')

    listings.delete(listing['id'], 'owner@kisan.app')
    listings.delete(other['id'], 'admin@kisan.app', is_admin=True)

    with pytest.raises(NotFound):
        store.read(LISTINGS, listing['id'])
    assert store.query(LISTINGS) == []
