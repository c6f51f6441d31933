from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user

from .extensions import services
from .guard import verified_required
from .schemas import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyRequest,
    parse,
)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _body():
    return request.get_json(silent=True)


@auth_bp.route('/register', methods=['POST'])
def register():
    data = parse(RegisterRequest, _body())
    user = services().accounts.register(data.email, data.name, data.password)
    return jsonify({
        'success': True,
        'message': 'OTP sent to your email',
        'user': user.to_dict(),
    }), 201


@auth_bp.route('/verify', methods=['POST'])
def verify():
    data = parse(VerifyRequest, _body())
    token, user = services().accounts.verify_email(data.email, data.code)
    return jsonify({
        'success': True,
        'message': 'Email verified successfully',
        'token': token,
        'user': user.to_dict(),
    })


@auth_bp.route('/resend-otp', methods=['POST'])
def resend_otp():
    data = parse(EmailRequest, _body())
    services().accounts.resend_otp(data.email)
    return jsonify({'success': True, 'message': 'OTP sent to your email'})


@auth_bp.route('/login', methods=['POST'])
def login():
    data = parse(LoginRequest, _body())
    token, user = services().accounts.authenticate(data.email, data.password)
    return jsonify({'success': True, 'token': token, 'user': user.to_dict()})


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    data = parse(EmailRequest, _body())
    services().accounts.request_password_reset(data.email)
    return jsonify({'success': True, 'message': 'Password reset OTP sent to your email'})


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    data = parse(ResetPasswordRequest, _body())
    services().accounts.reset_password(data.email, data.code, data.new_password)
    return jsonify({'success': True, 'message': 'Password reset successfully'})


@auth_bp.route('/me', methods=['GET'])
@verified_required
def me():
    return jsonify({'success': True, 'user': current_user.to_dict()})
