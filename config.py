import os
from dotenv import load_dotenv

# Carrega as variáveis de ambiente do arquivo .env
load_dotenv()

# Define o caminho base do projeto
basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    """Classe de configuração base."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'voce-precisa-mudar-isso'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'mandi.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- E-MAIL (avisos de aceite/recusa para o solicitante) ---
    MAIL_SERVER = os.environ.get('MAIL_SERVER') or 'smtp.gmail.com'
    MAIL_PORT = int(os.environ.get('MAIL_PORT') or 587)
    MAIL_USE_TLS = True
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER') or 'mandi@kisan.app'

    # --- UPLOADS ---
    UPLOAD_FOLDER = os.path.join(basedir, 'mandi', 'static', 'uploads')
    LISTING_IMAGE_SIZE = (800, 800)
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

class TestConfig(Config):
    """Configuração usada pelos testes: banco em memória, sem CSRF e sem envio de e-mail."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    SECRET_KEY = 'test'
    BCRYPT_LOG_ROUNDS = 4
