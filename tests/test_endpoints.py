import io
import re
from datetime import datetime

import pytest

from thesis_portal.extensions import db
from thesis_portal.models import AuthIdentity, SystemUser, ThesisCatalogEntry, ThesisSubmission
from thesis_portal.records.runtime import get_notifier, get_views


def _submission(name, category='affiliated', when=datetime(2024, 1, 15), **extra):
    values = dict(
        full_name=name,
        user_type=category,
        campus='Main Campus',
        thesis_title=f'{name} thesis',
        submission_date=when,
    )
    if category == 'affiliated':
        values.update(student_number='2020-001', program='Nursing')
    else:
        values.update(school='State College')
    values.update(extra)
    submission = ThesisSubmission(**values)
    db.session.add(submission)
    db.session.commit()
    return submission.id


def _open_records(client, query=''):
    """Render the records page and return it with the view id it carries."""
    r = client.get(f'/admin/records?{query}' if query else '/admin/records')
    assert r.status_code == 200
    match = re.search(r'data-view-id="([0-9a-f]+)"', r.get_data(as_text=True))
    return r, match.group(1)


def _status(client, view_id):
    return client.get(f'/admin/records/status?view={view_id}').get_json()


def test_unauthenticated_redirects(client):
    r = client.get('/admin/')
    assert r.status_code in (301, 302)

    r = client.get('/admin/records')
    assert r.status_code in (301, 302)
    assert '/auth/login' in r.headers['Location']


def test_public_form_renders(client):
    r = client.get('/')
    body = r.get_data(as_text=True)
    assert r.status_code == 200
    assert 'LPU Student' in body
    assert 'Riverside Campus' in body


def test_public_submission_saved(client):
    r = client.post('/', data={
        'user_type': 'external',
        'full_name': 'Dana Cruz',
        'school': 'State College',
        'campus': 'LIMA Campus',
        'thesis_title': 'Urban Heat Islands',
        'student_number': 'ignored',
    }, follow_redirects=True)

    assert r.status_code == 200
    assert 'successfully submitted' in r.get_data(as_text=True)
    row = ThesisSubmission.query.one()
    assert row.user_type == 'external'
    assert row.school == 'State College'
    assert row.student_number is None
    assert row.program is None


def test_public_submission_missing_fields(client):
    r = client.post('/', data={'user_type': 'affiliated', 'full_name': 'Eve', 'campus': 'Main Campus'})

    body = r.get_data(as_text=True)
    assert r.status_code == 400
    assert 'Please fill in all required fields.' in body
    assert 'Student number is required.' in body
    assert ThesisSubmission.query.count() == 0


def test_thesis_title_lookup(client):
    db.session.add_all([
        ThesisCatalogEntry(barcode='B1', thesis_title='Solar Power in Rural Areas', authors=['A'],
                           department='Engineering', publication_year=2022),
        ThesisCatalogEntry(barcode='B2', thesis_title='Solar Ovens', authors=['B'],
                           department='Engineering', publication_year=2021, is_deleted=True),
    ])
    db.session.commit()

    assert client.get('/api/thesis-titles?q=solar').get_json() == {'titles': ['Solar Power in Rural Areas']}
    assert client.get('/api/thesis-titles?q=s').get_json() == {'titles': []}


def test_login_failure(client, make_account, login):
    make_account('reader@example.com')

    r = login('reader@example.com', 'wrong')

    assert 'Invalid email or password' in r.get_data(as_text=True)


def test_inactive_account_cannot_login(client, make_account, login):
    make_account('gone@example.com', status='Inactive')

    r = login('gone@example.com')

    assert 'inactive' in r.get_data(as_text=True)
    assert client.get('/admin/').status_code in (301, 302)


def test_login_records_last_login(client, make_account, login):
    make_account('reader@example.com')

    r = login('reader@example.com')

    assert 'Successfully logged in!' in r.get_data(as_text=True)
    assert SystemUser.query.filter_by(email='reader@example.com').one().last_login is not None


def test_statistics_tab(reader_client):
    _submission('Alice')
    _submission('Bob', category='external')

    r = reader_client.get('/admin/')
    body = r.get_data(as_text=True)

    assert r.status_code == 200
    assert 'Total Submissions' in body
    assert '50.0%' in body


def test_records_tab_filters(reader_client):
    _submission('Alice')
    _submission('Bob', category='external')

    r = reader_client.get('/admin/records?search_term=alice')
    body = r.get_data(as_text=True)

    assert r.status_code == 200
    assert 'Alice' in body
    assert 'Bob thesis' not in body
    assert 'Showing 1 of 2 records matching &#34;alice&#34; in all fields' in body
    # Readers do not get delete buttons
    assert 'delete' not in body.split('<tbody>')[1].lower()


def test_records_tab_empty_states(reader_client):
    r = reader_client.get('/admin/records')
    assert 'No thesis submissions yet' in r.get_data(as_text=True)

    _submission('Alice')
    r = reader_client.get('/admin/records?search_term=nobody')
    assert 'No records match your search criteria.' in r.get_data(as_text=True)


def test_records_view_picks_up_new_submissions(reader_client):
    _, view_id = _open_records(reader_client)
    assert _status(reader_client, view_id)['pending'] is False

    _submission('Late Arrival')

    assert _status(reader_client, view_id)['pending'] is True
    r = reader_client.get(f'/admin/records?view={view_id}')
    assert 'Late Arrival' in r.get_data(as_text=True)


def test_records_page_stays_live_after_navigating_from_another(reader_client):
    _submission('Alice')
    _, first_id = _open_records(reader_client)
    _, second_id = _open_records(reader_client, f'view={first_id}&search_term=thesis')
    assert second_id != first_id
    assert len(get_views()) == 1

    # The page that was left sends its close after the new page rendered
    assert reader_client.post(f'/admin/records/close?view={first_id}').get_json() == {'closed': False}

    reader_client.post('/', data={
        'user_type': 'external',
        'full_name': 'Dana Cruz',
        'school': 'State College',
        'campus': 'LIMA Campus',
        'thesis_title': 'Urban Heat Islands',
    })

    status = _status(reader_client, second_id)
    assert status['open'] is True
    assert status['pending'] is True
    assert _status(reader_client, first_id) == {'open': False, 'pending': False}


def test_closing_one_records_page_leaves_the_other_live(reader_client):
    _, first_id = _open_records(reader_client)
    _, second_id = _open_records(reader_client)
    assert len(get_views()) == 2

    assert reader_client.post(f'/admin/records/close?view={first_id}').get_json() == {'closed': True}
    _submission('Alice')

    assert _status(reader_client, first_id) == {'open': False, 'pending': False}
    assert _status(reader_client, second_id)['pending'] is True
    assert get_notifier().subscriber_count('thesis_submissions') == 1


def test_refresh_reports_loaded_count(reader_client):
    _submission('Alice')

    r = reader_client.get('/admin/records?refresh=1&sort_order=asc', follow_redirects=True)

    assert 'Successfully loaded 1 thesis submission records.' in r.get_data(as_text=True)

def test_export_csv(reader_client):
    _submission('Alice', when=datetime(2024, 1, 10))
    _submission('Bob', category='external', when=datetime(2024, 1, 20))
    _, view_id = _open_records(reader_client)

    r = reader_client.get(f'/admin/records/export.csv?view={view_id}&category=external')

    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert 'filename=thesis_submissions.csv' in r.headers['Content-Disposition']
    lines = r.get_data(as_text=True).splitlines()
    assert lines[0] == '"Name","Type","ID/School","Campus","Program","Thesis Title","Date"'
    assert lines[1:] == ['"Bob","Non-LPU Student","State College","Main Campus","","Bob thesis","01/20/2024"']


def test_export_without_open_view_redirects(reader_client):
    r = reader_client.get('/admin/records/export.csv')
    assert r.status_code == 302

    r = reader_client.get('/admin/records/export.csv?view=unknown')
    assert r.status_code == 302


def test_reader_cannot_delete_record(reader_client):
    record_id = _submission('Alice')

    r = reader_client.post(f'/admin/records/{record_id}/delete', data={'confirm': 'yes'}, follow_redirects=True)

    assert "You don't have permission to delete records." in r.get_data(as_text=True)
    assert db.session.get(ThesisSubmission, record_id) is not None


def test_admin_deletes_record_after_confirmation(admin_client):
    record_id = _submission('Alice')

    r = admin_client.post(f'/admin/records/{record_id}/delete', follow_redirects=True)
    assert 'Please confirm the deletion.' in r.get_data(as_text=True)
    assert db.session.get(ThesisSubmission, record_id) is not None

    r = admin_client.post(f'/admin/records/{record_id}/delete', data={'confirm': 'yes'}, follow_redirects=True)
    assert 'Record deleted successfully.' in r.get_data(as_text=True)
    assert db.session.get(ThesisSubmission, record_id) is None


@pytest.mark.parametrize('path', ['/admin/thesis-data', '/admin/users'])
def test_reader_restricted_from_admin_tabs(reader_client, path):
    r = reader_client.get(path)

    assert r.status_code == 403
    assert 'Access Restricted' in r.get_data(as_text=True)


def test_admin_tabs_visible_to_admin(admin_client):
    body = admin_client.get('/admin/').get_data(as_text=True)

    assert 'Thesis Data' in body
    assert 'System Users' in body


def test_profile_role_admin_fallback(client, login, app):
    from werkzeug.security import generate_password_hash
    db.session.add(AuthIdentity(
        email='legacy@example.com',
        password_hash=generate_password_hash('testpass', method=app.config['PASSWORD_HASH_METHOD']),
        profile_role='admin',
    ))
    db.session.commit()

    login('legacy@example.com')

    assert client.get('/admin/users').status_code == 200


def test_catalog_upload_and_soft_delete(admin_client):
    csv_text = (
        'barcode,thesis_title,authors,department,publication_year\n'
        'T-001,Coastal Erosion Models,Ana Reyes;Ben Tan,Engineering,2021\n'
        'T-002,Learning Analytics,Carl Lim,Education,2023\n'
    )
    r = admin_client.post('/admin/thesis-data/upload', data={
        'file': (io.BytesIO(csv_text.encode('utf-8')), 'theses.csv'),
    }, content_type='multipart/form-data', follow_redirects=True)

    assert 'Successfully uploaded 2 thesis records.' in r.get_data(as_text=True)
    assert ThesisCatalogEntry.query.count() == 2

    body = admin_client.get('/admin/thesis-data?q=ben tan').get_data(as_text=True)
    assert 'Coastal Erosion Models' in body
    assert 'Learning Analytics' not in body

    entry = ThesisCatalogEntry.query.filter_by(barcode='T-001').one()
    admin_client.post(f'/admin/thesis-data/{entry.id}/delete', follow_redirects=True)

    assert db.session.get(ThesisCatalogEntry, entry.id).is_deleted is True
    assert 'Coastal Erosion Models' not in admin_client.get('/admin/thesis-data').get_data(as_text=True)


def test_catalog_upload_rejects_bad_rows(admin_client):
    csv_text = (
        'barcode,thesis_title,authors,department,publication_year\n'
        'T-001,,Ana Reyes,Engineering,2021\n'
        'T-002,Learning Analytics,Carl Lim,Education,next year\n'
    )
    r = admin_client.post('/admin/thesis-data/upload', data={
        'file': (io.BytesIO(csv_text.encode('utf-8')), 'theses.csv'),
    }, content_type='multipart/form-data', follow_redirects=True)

    body = r.get_data(as_text=True)
    assert 'Line 2:' in body
    assert 'Line 3: publication year must be a number.' in body
    assert ThesisCatalogEntry.query.count() == 0


def test_admin_adds_and_deletes_user(admin_client):
    r = admin_client.post('/admin/users', data={
        'name': 'New Reader',
        'email': 'New.Reader@example.com',
        'role': 'Reader',
        'status': 'Active',
    }, follow_redirects=True)

    assert 'User created successfully. Temporary password:' in r.get_data(as_text=True)
    account = SystemUser.query.filter_by(email='new.reader@example.com').one()
    assert account.identity.email == 'new.reader@example.com'

    r = admin_client.post('/admin/users', data={
        'name': 'Again', 'email': 'new.reader@example.com', 'role': 'Reader', 'status': 'Active',
    }, follow_redirects=True)
    assert 'A user with this email already exists.' in r.get_data(as_text=True)

    r = admin_client.post(f'/admin/users/{account.id}/delete', data={'confirm': 'yes'}, follow_redirects=True)
    assert 'User deleted successfully.' in r.get_data(as_text=True)
    assert db.session.get(SystemUser, account.id) is None


def test_user_search(admin_client):
    body = admin_client.get('/admin/users?q=boss').get_data(as_text=True)

    assert 'boss@example.com' in body
    assert 'admin@example.com' not in body


def test_close_releases_records_view(reader_client):
    _, view_id = _open_records(reader_client)
    assert len(get_views()) == 1
    assert get_notifier().subscriber_count('thesis_submissions') == 1

    assert reader_client.post(f'/admin/records/close?view={view_id}').get_json() == {'closed': True}
    assert len(get_views()) == 0
    assert get_notifier().subscriber_count() == 0
    assert _status(reader_client, view_id) == {'open': False, 'pending': False}


def test_logout_closes_records_view(reader_client):
    _open_records(reader_client)
    _open_records(reader_client)

    r = reader_client.get('/auth/logout', follow_redirects=True)

    assert 'logged out' in r.get_data(as_text=True)
    assert len(get_views()) == 0


def test_failed_reload_keeps_previous_records(reader_client, monkeypatch):
    from thesis_portal.errors import FetchError
    from thesis_portal.records.store import RecordStoreClient

    _submission('Alice')
    _, view_id = _open_records(reader_client)

    def broken_load(self, table_name, ordering_field, direction='desc'):
        raise FetchError('Failed to fetch thesis_submissions records. Please try again.')

    monkeypatch.setattr(RecordStoreClient, 'load_all', broken_load)
    r = reader_client.get(f'/admin/records?view={view_id}&refresh=1', follow_redirects=True)

    body = r.get_data(as_text=True)
    assert 'Failed to fetch thesis_submissions records.' in body
    assert 'Alice' in body
