# ARQUIVO: mandi/routes/auth.py

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, current_user, login_required
from mandi import db
from mandi.forms.forms import RegistrationForm
from mandi.models.user import User
from mandi.services.log_service import log_event

auth = Blueprint('auth', __name__)

def user_payload(user):
    return {'id': user.id, 'email': user.email, 'display_name': user.display_name, 'is_admin': user.is_admin}

# --- Rotas ---
@auth.route('/register', methods=['POST'])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return jsonify({'success': False, 'error': 'invalid_registration',
                        'message': 'Please check the registration details.', 'errors': form.errors}), 400

    email = form.email.data.strip().lower()
    if User.query.filter_by(email=email).first():
        return jsonify({'success': False, 'error': 'email_taken',
                        'message': 'This e-mail is already registered.'}), 409

    user = User(email=email, display_name=form.display_name.data.strip())
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.commit()

    log_event("Registration", "SUCCESS", {"user_id": user.id}, actor=email, ip_address=request.remote_addr)
    return jsonify({'success': True, 'message': 'Registered! Please login to continue.', 'user': user_payload(user)}), 201

@auth.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return jsonify({'success': True, 'user': user_payload(current_user)})
    if request.method == 'GET':
        return jsonify({'success': False, 'error': 'login_required', 'message': 'Please login to continue.'}), 401

    data = request.get_json(silent=True) or request.form
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    remember = bool(data.get('remember'))
    user = User.query.filter_by(email=email).first()

    if user and user.is_active and user.check_password(password):
        login_user(user, remember=remember)
        return jsonify({'success': True, 'user': user_payload(user)})

    log_event("Login", "FAILURE", {"email": email}, ip_address=request.remote_addr)
    return jsonify({'success': False, 'error': 'invalid_credentials',
                    'message': 'Login failed. Check your e-mail and password.'}), 401

@auth.route('/logout')
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})
