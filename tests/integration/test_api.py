"""
Integration tests for the API.
"""
import json


def test_health_endpoint(client):
    """Test the health endpoint returns a 200 response."""
    response = client.get('/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert 'status' in data
    assert data['status'] == 'healthy'
    assert data['environment'] == 'testing'
    assert data['database_connected'] is True


def test_api_docs_endpoint(client):
    """Test the API docs endpoint returns a 200 response."""
    response = client.get('/api/docs')
    assert response.status_code == 200
    assert b'Swagger' in response.data


def test_swagger_lists_every_namespace(client):
    response = client.get('/swagger.json')
    assert response.status_code == 200
    paths = response.get_json()['paths']
    for path in ('/api/auth/login', '/api/students/', '/api/managers/', '/api/books/',
                 '/api/subscriptions/', '/api/subscriptions/student/subscribe', '/webhook'):
        assert path in paths


def test_errors_use_message_key(client, student_auth):
    response = client.get('/api/books/999', headers=student_auth['headers'])
    assert response.status_code == 404
    assert response.get_json() == {'message': 'Book not found'}
