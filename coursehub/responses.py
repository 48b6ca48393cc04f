"""
JSON response helpers shared by the blueprints
"""
from flask import jsonify
from coursehub import db


def failure(message, status=400):
    return jsonify({'success': False, 'message': message}), status


def error_response(error):
    """Roll back the session and answer with a service error's message and status"""
    db.session.rollback()
    return failure(error.message, error.status_code)


def form_errors(form):
    """First error message of every invalid field"""
    return {name: errors[0] for name, errors in form.errors.items() if errors}
