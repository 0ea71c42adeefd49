import click
from mandi import create_app, db
from mandi.models.user import User, ApiLog
from mandi.models.equipment import Listing, BookingRequest, NegotiationMessage, Review, OfferType
from mandi.services.booking_service import BookingCoordinator
from mandi.services.listing_service import ListingService
from mandi.services.store import get_store

app = create_app()

@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'User': User,
        'ApiLog': ApiLog,
        'Listing': Listing,
        'BookingRequest': BookingRequest,
        'NegotiationMessage': NegotiationMessage,
        'Review': Review,
        'store': get_store(),
    }

@app.cli.command('seed_db')
def seed_db_command():
    """Adiciona agricultores e anúncios de exemplo ao banco de dados."""
    db.create_all()

    farmers = [
        ('ramesh@kisan.app', 'Ramesh Patil'),
        ('sunita@kisan.app', 'Sunita Devi'),
        ('admin@kisan.app', 'Mandi Admin'),
    ]
    for email, name in farmers:
        if not User.query.filter_by(email=email).first():
            user = User(email=email, display_name=name, is_admin=email.startswith('admin@'))
            user.set_password('farmer123')
            db.session.add(user)
    db.session.commit()

    listings = ListingService(get_store())
    if not listings.list():
        listings.create('ramesh@kisan.app', 'Ramesh Patil', {
            'name': 'Mahindra 575 Tractor', 'offer_type': OfferType.RENT, 'price': 1500,
            'location': 'Nashik', 'description': 'Per day, with driver.'})
        listings.create('ramesh@kisan.app', 'Ramesh Patil', {
            'name': 'Rotavator 6ft', 'offer_type': OfferType.SALE, 'price': 65000,
            'location': 'Nashik', 'description': 'Two seasons old.'})
        listings.create('sunita@kisan.app', 'Sunita Devi', {
            'name': 'Knapsack Sprayer', 'offer_type': OfferType.RENT, 'price': 200,
            'location': 'Pune'})
    print('Banco de dados populado com agricultores e anúncios de exemplo!')

@app.cli.command('reconcile')
def reconcile_command():
    """Marca como 'Item Unavailable' os pedidos pendentes de anúncios já travados."""
    report = BookingCoordinator(get_store()).reconcile_all()
    if not report:
        click.echo('Nenhum anúncio travado com pedidos pendentes.')
        return
    for listing_id, result in report.items():
        click.echo(f'Anúncio {listing_id}: {len(result.swept)} varrido(s), {len(result.failed)} falha(s)')
