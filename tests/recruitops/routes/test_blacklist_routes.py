"""Tests for the /blacklist endpoints."""
import pytest


@pytest.fixture
def admin(auth_headers):
    return auth_headers(org_role='org:admin')


class TestBlacklistRead:

    def test_member_can_list(self, client, auth_headers):
        resp = client.get('/blacklist/org_1', headers=auth_headers())
        assert resp.status_code == 200
        assert resp.get_json() == {'entries': []}

    def test_check_endpoint(self, client, admin, auth_headers):
        client.post('/blacklist/org_1', json={'company': 'Acme Corp'}, headers=admin)
        resp = client.post('/blacklist/org_1/check',
                           json={'company': 'ACME corp', 'jobUrl': 'https://jobs.example/1'},
                           headers=auth_headers())
        data = resp.get_json()
        assert data['blacklisted'] is True
        assert data['entry']['company'] == 'Acme Corp'


class TestBlacklistWrite:

    def test_member_cannot_add(self, client, auth_headers):
        resp = client.post('/blacklist/org_1', json={'company': 'Acme'}, headers=auth_headers())
        assert resp.status_code == 403
        assert resp.get_json()['error'] == 'Admin role required'

    def test_admin_adds_entry(self, client, admin):
        resp = client.post('/blacklist/org_1', json={'company': 'Acme', 'reason': 'Client'}, headers=admin)
        assert resp.status_code == 201
        entry = resp.get_json()['entry']
        assert entry['company'] == 'Acme'
        assert entry['reason'] == 'Client'
        assert entry['addedBy'] == 'user_a'

    def test_empty_entry_400(self, client, admin):
        resp = client.post('/blacklist/org_1', json={}, headers=admin)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Must provide company name or domain'

    def test_bulk_add(self, client, admin):
        resp = client.post('/blacklist/org_1/bulk', json={'entries': [
            {'company': 'Acme'}, {'domain': 'globex.com'}, {'reason': 'nothing to match'},
        ]}, headers=admin)
        assert resp.get_json() == {'success': True, 'added': 2, 'skipped': 1}

    def test_bulk_requires_list(self, client, admin):
        resp = client.post('/blacklist/org_1/bulk', json={'entries': 'Acme'}, headers=admin)
        assert resp.status_code == 400

    def test_delete_entry(self, client, admin):
        entry_id = client.post('/blacklist/org_1', json={'company': 'Acme'}, headers=admin).get_json()['entry']['id']
        assert client.delete(f'/blacklist/org_1/{entry_id}', headers=admin).status_code == 200
        assert client.delete(f'/blacklist/org_1/{entry_id}', headers=admin).status_code == 404

    def test_admin_of_other_org_forbidden(self, client, auth_headers):
        resp = client.post('/blacklist/org_2', json={'company': 'Acme'},
                           headers=auth_headers(org_role='org:admin'))
        assert resp.status_code == 403

    def test_first_write_creates_organization(self, client, admin, db_session):
        from recruitops.models.organization import Organization
        assert client.post('/blacklist/org_1', json={'company': 'Acme'}, headers=admin).status_code == 201
        assert db_session.get(Organization, 'org_1') is not None

    def test_bulk_on_new_organization(self, client, admin, db_session):
        from recruitops.models.organization import Organization
        resp = client.post('/blacklist/org_1/bulk', json={'entries': [{'domain': 'globex.com'}]}, headers=admin)
        assert resp.get_json() == {'success': True, 'added': 1, 'skipped': 0}
        assert db_session.get(Organization, 'org_1') is not None

    def test_bulk_skips_non_object_rows(self, client, admin):
        resp = client.post('/blacklist/org_1/bulk', json={'entries': ['acme.com', {'company': 'Acme'}]}, headers=admin)
        assert resp.get_json() == {'success': True, 'added': 1, 'skipped': 1}
