from flask import Flask, jsonify
from config import Config
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_mail import Mail

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
mail = Mail()

@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'login_required', 'message': 'Please login to continue.'}), 401

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Importa os modelos para registrar as tabelas no metadata
    from mandi import models  # noqa: F401

    from mandi.routes.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint)

    from mandi.routes.marketplace import marketplace as marketplace_blueprint
    app.register_blueprint(marketplace_blueprint)

    from mandi.routes.admin import admin as admin_blueprint
    app.register_blueprint(admin_blueprint, url_prefix='/admin')

    return app
