"""Tests for the outreach collaborator's webhooks (API-key auth)."""
import pytest

from recruitops.auth import create_api_key
from recruitops.database import utcnow
from recruitops.models.api_key import ApiKey
from recruitops.models.run import Run


@pytest.fixture
def run(db_session, orgs):
    run = Run(id='run-1', organization_id='org_1', created_by='user_a',
              job_url='https://jobs.example/1', status='queued', created_at=utcnow())
    db_session.add(run)
    db_session.commit()
    return run


@pytest.fixture
def key_headers(db_session, orgs):
    api_key = create_api_key(db_session, 'org_1', 'make')
    return {'Authorization': f'Bearer {api_key.key}'}


PROSPECTS = {'prospects': [
    {'name': 'Dana', 'title': 'VP Eng', 'company': 'Initech', 'rank': 1},
    {'name': 'Eli', 'title': 'CTO', 'company': 'Initech', 'rank': 2},
]}


class TestApiKeyAuth:

    def test_missing_key_401(self, client, run):
        resp = client.post('/runs/run-1/prospects', json=PROSPECTS)
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Missing API key'

    def test_user_token_is_not_an_api_key(self, client, run, auth_headers):
        resp = client.post('/runs/run-1/prospects', json=PROSPECTS, headers=auth_headers())
        assert resp.status_code == 401

    def test_unknown_key_401(self, client, run):
        resp = client.post('/runs/run-1/prospects', json=PROSPECTS,
                           headers={'Authorization': 'Bearer mk_doesnotexist'})
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Invalid API key'

    def test_key_from_other_org_404(self, client, run, db_session):
        other = create_api_key(db_session, 'org_2', 'other')
        resp = client.post('/runs/run-1/prospects', json=PROSPECTS,
                           headers={'Authorization': f'Bearer {other.key}'})
        assert resp.status_code == 404

    def test_records_last_used(self, client, run, key_headers, db_session):
        client.post('/runs/run-1/prospects', json=PROSPECTS, headers=key_headers)
        api_key = db_session.query(ApiKey).filter_by(name='make').one()
        assert api_key.last_used_at is not None


class TestProspectsWebhook:

    def test_stores_prospects_and_starts_run(self, client, run, key_headers, db_session):
        resp = client.post('/runs/run-1/prospects', json=PROSPECTS, headers=key_headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['count'] == 2
        assert data['status'] == 'running'
        assert db_session.get(Run, 'run-1').status == 'running'

    def test_prospects_must_be_list(self, client, run, key_headers):
        resp = client.post('/runs/run-1/prospects', json={'prospects': 'Dana'}, headers=key_headers)
        assert resp.status_code == 400

    def test_prospect_entries_must_be_objects(self, client, run, key_headers, db_session):
        resp = client.post('/runs/run-1/prospects', json={'prospects': ['Dana']}, headers=key_headers)
        assert resp.status_code == 400
        assert db_session.get(Run, 'run-1').status == 'queued'


class TestCampaignCreatedWebhook:

    def test_completes_run(self, client, run, key_headers, auth_headers):
        ids = client.post('/runs/run-1/prospects', json=PROSPECTS, headers=key_headers).get_json()['prospectIds']

        resp = client.post('/runs/run-1/campaign-created', json={
            'campaignId': 'camp-1',
            'campaigns': [{'prospectId': pid} for pid in ids],
        }, headers=key_headers)

        assert resp.get_json() == {'success': True, 'updated': 2, 'status': 'completed'}
        detail = client.get('/runs/run-1', headers=auth_headers()).get_json()
        assert detail['run']['campaignId'] == 'camp-1'
        assert {p['pipelineStage'] for p in detail['prospects']} == {'invite_sent'}

    def test_campaign_id_required(self, client, run, key_headers):
        resp = client.post('/runs/run-1/campaign-created', json={}, headers=key_headers)
        assert resp.status_code == 400

    def test_campaign_entries_must_be_objects(self, client, run, key_headers):
        resp = client.post('/runs/run-1/campaign-created',
                           json={'campaignId': 'camp-1', 'campaigns': ['p-1']}, headers=key_headers)
        assert resp.status_code == 400
