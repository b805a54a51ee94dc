"""
Public Routes

Thesis submission form and the catalog title lookup it uses.
"""

from flask import current_app, flash, jsonify, redirect, render_template, request, url_for

from thesis_portal.errors import FetchError, ValidationError
from thesis_portal.public import public_bp
from thesis_portal.records.runtime import get_store
from thesis_portal.records.store import SUBMISSIONS_TABLE
from thesis_portal.services import build_submission, find_titles


def _render_form(form=None, errors=None, status=200):
    return render_template(
        'public/submit.html',
        form=form or {},
        errors=errors or {},
        campus_options=current_app.config['CAMPUS_OPTIONS'],
        program_options=current_app.config['PROGRAM_OPTIONS'],
        institution=current_app.config['INSTITUTION_NAME'],
    ), status


@public_bp.route('/', methods=['GET', 'POST'])
def submit():
    """Public thesis submission form"""
    if request.method == 'POST':
        try:
            values = build_submission(
                request.form,
                current_app.config['CAMPUS_OPTIONS'],
                current_app.config['PROGRAM_OPTIONS'],
            )
        except ValidationError as e:
            flash('Please fill in all required fields.', 'danger')
            return _render_form(request.form, e.errors, 400)

        try:
            get_store().insert(SUBMISSIONS_TABLE, values)
        except FetchError:
            flash('There was an error submitting your record. Please try again.', 'danger')
            return _render_form(request.form, status=503)

        flash('Record Submitted: your thesis record has been successfully submitted.', 'success')
        return redirect(url_for('public.submit'))

    return _render_form()


@public_bp.route('/api/thesis-titles')
def thesis_titles():
    """Catalog titles matching ?q=, for the title lookup on the form"""
    try:
        titles = find_titles(request.args.get('q', ''))
    except FetchError as e:
        return jsonify({'error': e.message, 'titles': []}), 503
    return jsonify({'titles': titles})
