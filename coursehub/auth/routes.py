"""
Authentication routes
"""
from datetime import datetime
from flask import request, jsonify
from flask_login import login_user, logout_user, current_user, login_required
from flask_wtf.csrf import generate_csrf
from coursehub.auth import auth_bp
from coursehub.models.user import User
from coursehub.responses import failure
from coursehub import db


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login route"""
    data = request.get_json(silent=True) or request.form
    username = data.get('username')
    password = data.get('password')

    user = User.query.filter_by(username=username).first()

    if not user or not user.check_password(password or ''):
        return failure('Invalid username or password', 401)

    login_user(user)
    user.last_login = datetime.utcnow()
    db.session.commit()

    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Logout route"""
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    """Current user"""
    return jsonify({'success': True, 'user': current_user.to_dict()})


@auth_bp.route('/csrf-token')
def csrf_token():
    """Token for the csrf_token field of form and JSON write requests"""
    return jsonify({'success': True, 'csrfToken': generate_csrf()})
