"""
Tests for the Flask application (app.py)

Tests cover:
- Health and region endpoints
- Incident reporting (JSON and multipart) and listing
- Status, comment and assignment endpoints
- Alerts, guides and admin directory endpoints
- Error handling and notifications
"""

import io

import pytest

from app import app
from dependencies import get_container
from regions import REGIONS

SUPER_ADMIN = {'X-User-Id': 'root', 'X-User-Name': 'Super Admin'}
CASA_ADMIN = {'X-User-Id': 'admin-casa', 'X-User-Name': 'Admin Casa',
              'X-User-Role': 'REGIONAL_ADMIN', 'X-User-Region': 'Casablanca-Settat'}
CITIZEN = {'X-User-Id': 'citizen-1', 'X-User-Name': 'Amina'}


@pytest.fixture
def client():
    """Create Flask test client."""
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def report(client, headers=CITIZEN, **overrides):
    body = {
        'type': 'VITAL_EMERGENCY',
        'sub_type': 'FIRE',
        'description': 'Incendie dans un entrepôt',
        'region': 'Casablanca-Settat',
    }
    body.update(overrides)
    return client.post('/api/incidents', json=body, headers=headers)


class TestBasicEndpoints:
    """Tests for health and reference data."""

    def test_health(self, client):
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.get_json() == {'status': 'ok'}

    def test_regions(self, client):
        response = client.get('/api/regions')
        assert response.get_json()['regions'] == list(REGIONS)


class TestIncidentEndpoints:
    """Tests for incident reporting and management."""

    def test_report_incident(self, client):
        response = report(client)
        assert response.status_code == 201
        data = response.get_json()
        assert data['success'] is True
        assert data['incident']['userId'] == 'citizen-1'
        assert data['incident']['status'] == 'RESPONDERS_EN_ROUTE'
        assert data['incident']['region'] == 'Casablanca-Settat'
        assert 'notification' in data

    def test_report_civil_problem(self, client):
        response = report(client, type='CIVIL_PROBLEM', sub_type='POTHOLE', description='Trou')
        assert response.status_code == 201
        assert response.get_json()['incident']['status'] == 'ALERT_RECEIVED'

    def test_report_validation_error(self, client):
        response = report(client, description='')
        assert response.status_code == 422
        data = response.get_json()
        assert data['success'] is False
        assert data['error']['code'] == 'VALIDATION_ERROR'
        assert data['notification']

    def test_report_unknown_type(self, client):
        response = report(client, type='EARTHQUAKE')
        assert response.status_code == 422

    def test_report_requires_json_object(self, client):
        response = client.post('/api/incidents', data='nope', headers=CITIZEN)
        assert response.status_code == 422

    def test_report_multipart_with_attachment(self, client):
        response = client.post(
            '/api/incidents',
            data={
                'type': 'VITAL_EMERGENCY',
                'sub_type': 'INJURY',
                'description': 'Personne blessée',
                'attachments': (io.BytesIO(b'\xff\xd8\xff'), 'blessure.jpg', 'image/jpeg'),
            },
            headers=CITIZEN,
            content_type='multipart/form-data',
        )
        assert response.status_code == 201
        attachments = response.get_json()['incident']['attachments']
        assert attachments[0].startswith('data:image/jpeg;base64,')

    def test_listing_is_scoped(self, client):
        report(client, region='Casablanca-Settat')
        report(client, headers={'X-User-Id': 'other', 'X-User-Name': 'Omar'}, region='Souss-Massa')

        everything = client.get('/api/incidents', headers=SUPER_ADMIN).get_json()
        assert everything['count'] == 2

        casa = client.get('/api/incidents', headers=CASA_ADMIN).get_json()
        assert casa['count'] == 1
        assert casa['incidents'][0]['region'] == 'Casablanca-Settat'

        own = client.get('/api/incidents', headers=CITIZEN).get_json()
        assert own['count'] == 1

    def test_listing_filters(self, client):
        report(client)
        report(client, type='CIVIL_PROBLEM', sub_type='WATER_LEAK', description='Fuite', address='Rue 12')
        data = client.get('/api/incidents?type=CIVIL_PROBLEM&search=rue', headers=SUPER_ADMIN).get_json()
        assert data['count'] == 1
        assert data['incidents'][0]['subType'] == 'WATER_LEAK'

    def test_history(self, client):
        report(client)
        data = client.get('/api/incidents/history?status=RESPONDERS_EN_ROUTE', headers=CITIZEN).get_json()
        assert data['count'] == 1

    def test_update_status(self, client):
        incident_id = report(client).get_json()['incident']['id']
        response = client.put(f'/api/incidents/{incident_id}/status',
                              json={'status': 'RESOLVED'}, headers=CASA_ADMIN)
        assert response.status_code == 200
        assert response.get_json()['incident']['status'] == 'RESOLVED'

    def test_citizen_cannot_update_status(self, client):
        incident_id = report(client).get_json()['incident']['id']
        response = client.put(f'/api/incidents/{incident_id}/status',
                              json={'status': 'RESOLVED'}, headers=CITIZEN)
        assert response.status_code == 403
        assert response.get_json()['error']['code'] == 'ACCESS_DENIED'

    def test_update_status_not_found(self, client):
        response = client.put('/api/incidents/missing/status',
                              json={'status': 'RESOLVED'}, headers=SUPER_ADMIN)
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'NOT_FOUND'

    def test_add_comment(self, client):
        incident_id = report(client).get_json()['incident']['id']
        response = client.post(f'/api/incidents/{incident_id}/comments',
                               json={'message': 'Équipe envoyée'}, headers=SUPER_ADMIN)
        assert response.status_code == 201
        comments = response.get_json()['incident']['comments']
        assert comments[0]['author'] == 'Super Admin'
        assert comments[0]['message'] == 'Équipe envoyée'

    def test_assign(self, client):
        incident_id = report(client).get_json()['incident']['id']
        admin = get_container().get_admin_directory().get_active('Casablanca-Settat')[0]
        response = client.put(f'/api/incidents/{incident_id}/assignment',
                              json={'admin_id': admin.id}, headers=SUPER_ADMIN)
        data = response.get_json()
        assert data['incident']['assignedAdminId'] == admin.id
        assert data['assignee']['region'] == 'Casablanca-Settat'

    def test_assign_requires_admin_id(self, client):
        incident_id = report(client).get_json()['incident']['id']
        response = client.put(f'/api/incidents/{incident_id}/assignment', json={}, headers=SUPER_ADMIN)
        assert response.status_code == 422


class TestDetectionEndpoint:
    """Tests for image classification."""

    def test_detect(self, client):
        response = client.post(
            '/api/detections',
            data={'image': (io.BytesIO(b'\x89PNG'), 'incendie.png', 'image/png')},
            content_type='multipart/form-data',
        )
        data = response.get_json()
        assert data['detection']['subType'] == 'FIRE'
        assert data['applicable'] is True

    def test_detect_without_image(self, client):
        response = client.post('/api/detections', data={}, content_type='multipart/form-data')
        assert response.status_code == 422


class TestContentEndpoints:
    """Tests for alerts, guides and the admin directory."""

    def test_seeded_content(self, client):
        assert client.get('/api/alerts', headers=SUPER_ADMIN).get_json()['count'] == 3
        assert client.get('/api/guides').get_json()['count'] == 4
        assert client.get('/api/admins', headers=SUPER_ADMIN).get_json()['count'] == len(REGIONS)

    def test_active_alerts_for_regional_admin(self, client):
        alerts = client.get('/api/alerts?active=true', headers=CASA_ADMIN).get_json()['alerts']
        assert all(a['scope'] == 'GLOBAL' or a['region'] == 'Casablanca-Settat' for a in alerts)

    def test_alert_lifecycle(self, client):
        response = client.post('/api/alerts', json={
            'title': 'Vent fort', 'message': 'Rafales', 'scope': 'REGIONAL',
            'region': 'Casablanca-Settat', 'level': 'HIGH',
        }, headers=CASA_ADMIN)
        assert response.status_code == 201
        alert_id = response.get_json()['alert']['id']

        response = client.put(f'/api/alerts/{alert_id}', json={'active': False}, headers=CASA_ADMIN)
        assert response.get_json()['alert']['active'] is False

        response = client.delete(f'/api/alerts/{alert_id}', headers=CASA_ADMIN)
        assert response.status_code == 200
        response = client.delete(f'/api/alerts/{alert_id}', headers=CASA_ADMIN)
        assert response.status_code == 404

    def test_regional_admin_cannot_post_global_alert(self, client):
        response = client.post('/api/alerts', json={'title': 'T', 'message': 'M'}, headers=CASA_ADMIN)
        assert response.status_code == 403

    def test_guide_lifecycle(self, client):
        response = client.post('/api/guides', json={'title': 'Canicule', 'body': 'Hydratez-vous'},
                               headers=SUPER_ADMIN)
        guide_id = response.get_json()['guide']['id']
        assert client.get(f'/api/guides/{guide_id}').status_code == 200

        response = client.put(f'/api/guides/{guide_id}', json={'title': 'Canicule', 'body': 'Restez au frais'},
                              headers=SUPER_ADMIN)
        new_id = response.get_json()['guide']['id']
        assert new_id != guide_id
        assert client.get(f'/api/guides/{guide_id}').status_code == 404

        assert client.delete(f'/api/guides/{new_id}', headers=SUPER_ADMIN).status_code == 200

    def test_admin_directory(self, client):
        response = client.post('/api/admins', json={
            'fullName': 'Nadia', 'email': 'nadia@urgences.ma', 'phone': '0600', 'region': 'Souss-Massa',
        }, headers=SUPER_ADMIN)
        assert response.status_code == 201
        admin_id = response.get_json()['admin']['id']

        response = client.put(f'/api/admins/{admin_id}', json={'active': False}, headers=SUPER_ADMIN)
        assert response.get_json()['admin']['active'] is False

        assert client.delete(f'/api/admins/{admin_id}', headers=CASA_ADMIN).status_code == 403
        assert client.delete(f'/api/admins/{admin_id}', headers=SUPER_ADMIN).status_code == 200

    def test_stats(self, client):
        report(client)
        stats = client.get('/api/stats', headers=SUPER_ADMIN).get_json()
        assert stats['total_incidents'] == 1
        assert stats['total_guides'] == 4
        assert stats['total_admins'] == len(REGIONS)
        assert client.get('/api/stats', headers=CITIZEN).status_code == 403
