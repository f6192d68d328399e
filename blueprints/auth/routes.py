"""
Authentication routes: login, logout, current user.
The reservation confirm step sends signed-out users here.
"""

from flask import request, Blueprint
from flask_login import login_user, logout_user, login_required, current_user
from urllib.parse import urlparse

from blueprints.auth.forms import LoginForm
from models.user import User, get_user_by_username, update_last_login, check_password
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES

auth_bp = Blueprint('auth', __name__)


def _user_payload(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'full_name': user.full_name,
        'phone': user.phone,
        'role': user.role,
    }


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """
    Login route.

    GET: Tell the client a sign-in is needed (login_required lands here)
    POST: Check credentials (username, password, remember_me)
    """
    next_page = request.args.get('next')
    if not next_page or urlparse(next_page).netloc != '':
        next_page = None

    if current_user.is_authenticated:
        return api_success(data={'user': _user_payload(current_user), 'next': next_page})

    if request.method == 'GET':
        return api_error(MESSAGES['sign_in_required'], status=401,
                         code='authentication_required', next=next_page)

    form = LoginForm()

    if not form.validate_on_submit():
        return api_error(MESSAGES['field_required'], status=400,
                         code='validation_error', errors=form.errors)

    user_dict = get_user_by_username(form.username.data)

    if user_dict is None or not check_password(user_dict, form.password.data):
        return api_error(MESSAGES['invalid_credentials'], status=401, code='invalid_credentials')

    if not user_dict.get('active'):
        return api_error(MESSAGES['account_disabled'], status=403, code='account_disabled')

    user = User(user_dict)
    login_user(user, remember=form.remember_me.data)
    update_last_login(user.id)

    return api_success(
        data={'user': _user_payload(user), 'next': next_page},
        message=MESSAGES['login_success'].format(name=user.full_name or user.username)
    )


@auth_bp.route('/logout', methods=['GET', 'POST'])
@login_required
def logout():
    """Logout current user."""
    logout_user()
    return api_success(message=MESSAGES['logout_success'])


@auth_bp.route('/me')
@login_required
def me():
    return api_success(data={'user': _user_payload(current_user)})
