"""
Admin Routes

Statistics and user records are open to every staff member; thesis data and
system users are Admin only.
"""

import logging
import uuid

from flask import Response, current_app, flash, jsonify, redirect, render_template, request, session, url_for

from thesis_portal.admin import admin_bp
from thesis_portal.admin.decorators import admin_required, staff_required
from thesis_portal.errors import FetchError, PermissionDenied, ValidationError
from thesis_portal.models import AccountStatus, Role
from thesis_portal.models.enums import category_labels
from thesis_portal.records.engine import SEARCH_FIELDS, Criteria, campus_options, export_csv, summarize
from thesis_portal.records.runtime import get_store, get_views
from thesis_portal.records.store import SUBMISSIONS_TABLE
from thesis_portal.services import (
    compute_statistics, create_system_user, current_role, ingest_csv, is_admin, search_catalog,
    search_users, soft_delete_entry,
)

logger = logging.getLogger(__name__)

OWNER_SESSION_KEY = 'records_owner'
# Query argument carrying the records view id of the rendered page
VIEW_ARG = 'view'


def _labels():
    return category_labels(current_app.config['INSTITUTION_NAME'])


def _owner():
    owner = session.get(OWNER_SESSION_KEY)
    if owner is None:
        owner = session[OWNER_SESSION_KEY] = uuid.uuid4().hex
    return owner


def _page_view():
    """Records view for the page being rendered.

    A page reached from another records page takes over that page's view
    under a new id; anything else opens a fresh view.
    """
    views = get_views()
    view = views.adopt(request.args.get(VIEW_ARG), _owner())
    if view is None:
        view = views.open(
            get_store(),
            owner=_owner(),
            load_timeout=current_app.config['RECORDS_LOAD_TIMEOUT'],
        )
    return view


def _existing_view():
    return get_views().get(request.args.get(VIEW_ARG), _owner())


def _records_args(criteria, view_id=None):
    args = criteria.to_args()
    if view_id:
        args[VIEW_ARG] = view_id
    return args


def close_records_views():
    """Release every records view of this browser session."""
    owner = session.pop(OWNER_SESSION_KEY, None)
    if owner is None:
        return 0
    return get_views().close_owned(owner)


@admin_bp.route('/')
@staff_required
def dashboard():
    """Statistics tab."""
    records = []
    try:
        records = get_store().load_all(SUBMISSIONS_TABLE, 'submission_date', 'desc')
    except FetchError as e:
        flash(e.message, 'danger')

    stats = compute_statistics(
        records,
        campus_options=current_app.config['CAMPUS_OPTIONS'],
        program_options=current_app.config['PROGRAM_OPTIONS'],
    )
    return render_template('admin/statistics.html', stats=stats, labels=_labels())


@admin_bp.route('/records')
@staff_required
def records():
    """User records tab: search, filter, sort, export and delete."""
    criteria = Criteria.from_args(request.args)
    view = _page_view()

    if request.args.get('refresh'):
        if view.refresh():
            count = len(view.state.records)
            if count:
                flash(f'Successfully loaded {count} thesis submission records.', 'success')
        elif view.state.error:
            flash(view.state.error, 'danger')
        return redirect(url_for('admin.records', **_records_args(criteria, view.view_id)))

    if not view.ensure_fresh() and view.state.error:
        flash(view.state.error, 'danger')

    state = view.apply(criteria)
    visible = state.visible()
    return render_template(
        'admin/records.html',
        records=visible,
        total=len(state.records),
        criteria=criteria,
        view_id=view.view_id,
        summary=summarize(criteria, len(visible), len(state.records), _labels()),
        campuses=campus_options(state.records),
        search_fields=SEARCH_FIELDS,
        labels=_labels(),
        can_delete=is_admin(current_role()),
        poll_interval=current_app.config['RECORDS_POLL_INTERVAL_MS'],
        loaded_at=state.loaded_at,
    )


@admin_bp.route('/records/export.csv')
@staff_required
def export_records():
    """Download the records visible on a page. Renders that page's view snapshot only."""
    view = _existing_view()
    if view is None or not view.state.loaded:
        flash('Open the records list before exporting.', 'warning')
        return redirect(url_for('admin.records'))

    criteria = Criteria.from_args(request.args)
    visible = view.state.with_criteria(criteria).visible()
    body = export_csv(visible, date_format=current_app.config['EXPORT_DATE_FORMAT'], labels=_labels())
    filename = current_app.config['EXPORT_FILENAME']
    return Response(
        body,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'},
    )


@admin_bp.route('/records/<record_id>/delete', methods=['POST'])
@staff_required
def delete_record(record_id):
    """Delete one submission after explicit confirmation. Admin only."""
    criteria = Criteria.from_args(request.args)
    back = redirect(url_for('admin.records', **_records_args(criteria, request.args.get(VIEW_ARG))))
    role = current_role()
    if not is_admin(role):
        flash("You don't have permission to delete records.", 'danger')
        return back
    if request.form.get('confirm') != 'yes':
        flash('Please confirm the deletion.', 'warning')
        return back

    try:
        get_store().delete(record_id, role.value)
        flash('Record deleted successfully.', 'success')
    except PermissionDenied as e:
        flash(e.message, 'danger')
    except FetchError as e:
        flash(e.message, 'danger')
    return back


@admin_bp.route('/records/status')
@staff_required
def records_status():
    """Polled by a records page, with its ?view= id, to learn about pushed changes."""
    view = _existing_view()
    if view is None:
        return jsonify({'open': False, 'pending': False})
    state = view.state
    return jsonify({
        'open': True,
        'view_id': view.view_id,
        'pending': view.needs_reload,
        'generation': state.generation,
        'total': len(state.records),
    })


@admin_bp.route('/records/close', methods=['POST'])
@staff_required
def records_close():
    """Tear down the view of the page being left. Other pages keep theirs."""
    closed = get_views().close(request.args.get(VIEW_ARG), _owner())
    return jsonify({'closed': closed})


@admin_bp.route('/thesis-data')
@admin_required
def thesis_data():
    """Thesis data tab: catalog search and bulk upload."""
    term = request.args.get('q', '')
    entries = []
    try:
        entries = get_store().load_all('thesis_data', 'upload_date', 'desc')
    except FetchError as e:
        flash(e.message, 'danger')
    return render_template(
        'admin/thesis_data.html',
        entries=search_catalog(entries, term),
        total=len(entries),
        term=term,
    )


@admin_bp.route('/thesis-data/upload', methods=['POST'])
@admin_required
def upload_thesis_data():
    """Bulk insert catalog rows from an uploaded CSV file."""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        flash('Please choose a CSV file to upload.', 'danger')
        return redirect(url_for('admin.thesis_data'))

    try:
        text = upload.read().decode('utf-8-sig')
        count = ingest_csv(text, current_role())
        flash(f'Successfully uploaded {count} thesis records.', 'success')
    except UnicodeDecodeError:
        flash('The file must be UTF-8 encoded CSV.', 'danger')
    except ValidationError as e:
        for message in e.errors.values():
            flash(message, 'danger')
    except (PermissionDenied, FetchError) as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.thesis_data'))


@admin_bp.route('/thesis-data/<int:entry_id>/delete', methods=['POST'])
@admin_required
def delete_thesis_data(entry_id):
    """Soft-delete a catalog entry."""
    try:
        entry = soft_delete_entry(entry_id, current_role())
        flash(f'Thesis "{entry.thesis_title}" removed.', 'success')
    except (PermissionDenied, FetchError) as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.thesis_data'))


@admin_bp.route('/users', methods=['GET', 'POST'])
@admin_required
def system_users():
    """System users tab: list, search and add staff accounts."""
    if request.method == 'POST':
        try:
            _, password = create_system_user(
                request.form.get('name'),
                request.form.get('email'),
                request.form.get('role', Role.READER.value),
                request.form.get('status', AccountStatus.ACTIVE.value),
                actor_role=current_role(),
                hash_method=current_app.config['PASSWORD_HASH_METHOD'],
            )
            flash(f'User created successfully. Temporary password: {password}', 'success')
        except ValidationError as e:
            for message in e.errors.values():
                flash(message, 'danger')
        except (PermissionDenied, FetchError) as e:
            flash(e.message, 'danger')
        return redirect(url_for('admin.system_users'))

    term = request.args.get('q', '')
    users = []
    try:
        users = get_store().load_all('system_users', 'created_at', 'desc')
    except FetchError as e:
        flash(e.message, 'danger')
    return render_template(
        'admin/users.html',
        users=search_users(users, term),
        term=term,
        roles=[r.value for r in Role],
        statuses=[s.value for s in AccountStatus],
    )


@admin_bp.route('/users/<user_id>/delete', methods=['POST'])
@admin_required
def delete_system_user(user_id):
    """Delete a staff account after explicit confirmation."""
    if request.form.get('confirm') != 'yes':
        flash('Please confirm the deletion.', 'warning')
        return redirect(url_for('admin.system_users'))
    try:
        get_store().delete(user_id, current_role().value, table_name='system_users')
        flash('User deleted successfully.', 'success')
    except (PermissionDenied, FetchError) as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.system_users'))
