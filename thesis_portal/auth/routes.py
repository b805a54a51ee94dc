"""
Auth Routes

Staff authentication routes using Flask-Login.
"""

from flask import flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from thesis_portal.auth import auth_bp
from thesis_portal.errors import PermissionDenied
from thesis_portal.services.accounts import authenticate, record_login


def _safe_next(target):
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Staff login route"""
    if current_user.is_authenticated:
        return redirect(url_for('admin.dashboard'))

    if request.method == 'POST':
        email = request.form.get('email', '').strip()
        password = request.form.get('password', '')
        remember = bool(request.form.get('remember'))

        if not email or not password:
            flash('Please provide both email and password.', 'danger')
            return render_template('auth/login.html', email=email)

        try:
            identity = authenticate(email, password)
        except PermissionDenied as e:
            flash(e.message, 'danger')
            return render_template('auth/login.html', email=email)

        if identity is None:
            flash('Invalid email or password. Please check your credentials.', 'danger')
            return render_template('auth/login.html', email=email)

        login_user(identity, remember=remember)
        record_login(identity)
        flash('Successfully logged in!', 'success')
        return redirect(_safe_next(request.args.get('next')) or url_for('admin.dashboard'))

    return render_template('auth/login.html', email='')


@auth_bp.route('/logout')
@login_required
def logout():
    """Staff logout route"""
    from thesis_portal.admin.routes import close_records_views
    close_records_views()
    logout_user()
    flash('You have been logged out successfully.', 'info')
    return redirect(url_for('auth.login'))
