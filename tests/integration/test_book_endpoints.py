"""
Integration tests for the book catalog endpoints.
"""
import io
import os

import pytest

from library_api.errors import PersistenceError
from library_api.services.storage import LocalStorage


@pytest.fixture
def storage(app, tmp_path):
    """Keep uploads in a per-test folder."""
    storage = LocalStorage(str(tmp_path))
    app.extensions['storage'] = storage
    return storage


def _stored(storage, relative_path):
    return os.path.exists(os.path.join(storage.root, relative_path))


def _files_in(storage):
    return [name for _, _, names in os.walk(storage.root) for name in names]


def _create_book(client, auth, **fields):
    payload = {'title': 'Dune', 'author': 'Frank Herbert'}
    payload.update(fields)
    return client.post('/api/books/', json=payload, headers=auth['headers'])


def test_create_book_with_json(client, manager_auth, storage):
    response = _create_book(client, manager_auth, isbn='9780441013593', tags=['scifi', 'classic'])

    assert response.status_code == 201
    data = response.get_json()
    assert data['title'] == 'Dune'
    assert data['isbn'] == '9780441013593'
    assert data['tags'] == ['scifi', 'classic']
    assert data['cover_image'] is None


def test_create_book_with_uploads(client, manager_auth, storage):
    response = client.post(
        '/api/books/',
        data={
            'title': 'Dune',
            'author': 'Frank Herbert',
            'tags': ['scifi', 'classic, desert'],
            'CoverImage': (io.BytesIO(b'\x89PNG fake'), 'cover.png'),
            'BookPDF': (io.BytesIO(b'%PDF-1.4 fake'), 'dune.pdf'),
        },
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    )

    assert response.status_code == 201
    data = response.get_json()
    assert data['tags'] == ['scifi', 'classic', 'desert']
    assert data['cover_image'].startswith('CoverImage')
    assert data['cover_image'].endswith('cover.png')
    assert data['book_pdf'].startswith('BookPDF')
    assert _stored(storage, data['cover_image'])
    assert _stored(storage, data['book_pdf'])


def test_create_book_rejects_bad_extension(client, manager_auth, storage):
    response = client.post(
        '/api/books/',
        data={
            'title': 'Dune',
            'author': 'Frank Herbert',
            'CoverImage': (io.BytesIO(b'GIF89a'), 'cover.gif'),
        },
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    )

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid image format. Only jpeg, jpg, png are allowed.'


def test_create_book_requires_title_and_author(client, manager_auth, storage):
    response = client.post('/api/books/', json={'title': 'Dune'}, headers=manager_auth['headers'])

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Missing required fields: author'


def test_students_cannot_write_books(client, student_auth, storage):
    assert _create_book(client, student_auth).status_code == 403


def test_books_require_authentication(client):
    assert client.get('/api/books/').status_code == 401


def test_list_books_with_filters(client, manager_auth, student_auth, storage):
    _create_book(client, manager_auth, tags=['scifi'])
    _create_book(client, manager_auth, title='Emma', author='Jane Austen', tags=['romance'])

    def titles(**query):
        response = client.get('/api/books/', query_string=query, headers=student_auth['headers'])
        return [book['title'] for book in response.get_json()]

    assert titles() == ['Dune', 'Emma']
    assert titles(author='Jane Austen') == ['Emma']
    assert titles(tag='scifi') == ['Dune']


def test_get_book(client, manager_auth, student_auth, storage):
    book_id = _create_book(client, manager_auth).get_json()['id']

    response = client.get(f'/api/books/{book_id}', headers=student_auth['headers'])

    assert response.status_code == 200
    assert response.get_json()['author'] == 'Frank Herbert'


def test_patch_book_replaces_cover(client, manager_auth, storage):
    created = client.post(
        '/api/books/',
        data={'title': 'Dune', 'author': 'Frank Herbert', 'CoverImage': (io.BytesIO(b'old'), 'old.jpg')},
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    ).get_json()

    response = client.patch(
        f"/api/books/{created['id']}",
        data={'CoverImage': (io.BytesIO(b'new'), 'new.png')},
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data['title'] == 'Dune'
    assert data['cover_image'].endswith('new.png')
    assert _stored(storage, data['cover_image'])
    assert not _stored(storage, created['cover_image'])


def test_patch_book_fields(client, manager_auth, storage):
    book_id = _create_book(client, manager_auth, publisher='Chilton').get_json()['id']

    response = client.patch(f'/api/books/{book_id}', json={'isbn': '123'}, headers=manager_auth['headers'])

    data = response.get_json()
    assert data['isbn'] == '123'
    assert data['publisher'] == 'Chilton'


def test_put_book_resets_missing_fields(client, manager_auth, storage):
    book_id = _create_book(client, manager_auth, publisher='Chilton', tags=['scifi']).get_json()['id']

    response = client.put(
        f'/api/books/{book_id}',
        json={'title': 'Dune Messiah', 'author': 'Frank Herbert'},
        headers=manager_auth['headers'],
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data['title'] == 'Dune Messiah'
    assert data['publisher'] is None
    assert data['tags'] == []


def test_delete_book_removes_files(client, superuser_auth, storage):
    created = client.post(
        '/api/books/',
        data={'title': 'Dune', 'author': 'Frank Herbert', 'BookPDF': (io.BytesIO(b'%PDF'), 'dune.pdf')},
        content_type='multipart/form-data',
        headers=superuser_auth['headers'],
    ).get_json()

    response = client.delete(f"/api/books/{created['id']}", headers=superuser_auth['headers'])

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Book deleted'
    assert not _stored(storage, created['book_pdf'])
    assert client.get(f"/api/books/{created['id']}", headers=superuser_auth['headers']).status_code == 404


def test_rejected_upload_leaves_no_files(client, manager_auth, storage):
    response = client.post(
        '/api/books/',
        data={
            'title': 'Dune',
            'author': 'Frank Herbert',
            'CoverImage': (io.BytesIO(b'\x89PNG fake'), 'c.png'),
            'BookPDF': (io.BytesIO(b'MZ'), 'b.exe'),
        },
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    )

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid pdf format. Only doc, pdf are allowed.'
    assert _files_in(storage) == []
    assert client.get('/api/books/', headers=manager_auth['headers']).get_json() == []


def test_failed_insert_removes_uploads(client, app, manager_auth, storage, monkeypatch):
    def fail(*args, **kwargs):
        raise PersistenceError("Failed to insert books")

    monkeypatch.setattr(app.extensions['books'], 'insert_one', fail)

    response = client.post(
        '/api/books/',
        data={'title': 'Dune', 'author': 'Frank Herbert', 'CoverImage': (io.BytesIO(b'img'), 'cover.png')},
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    )

    assert response.status_code == 500
    assert _files_in(storage) == []


def test_failed_update_keeps_old_cover(client, app, manager_auth, storage, monkeypatch):
    created = client.post(
        '/api/books/',
        data={'title': 'Dune', 'author': 'Frank Herbert', 'CoverImage': (io.BytesIO(b'old'), 'old.jpg')},
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    ).get_json()

    def fail(*args, **kwargs):
        raise PersistenceError("Failed to update books")

    monkeypatch.setattr(app.extensions['books'], 'update_one', fail)

    response = client.patch(
        f"/api/books/{created['id']}",
        data={'CoverImage': (io.BytesIO(b'new'), 'new.png')},
        content_type='multipart/form-data',
        headers=manager_auth['headers'],
    )

    assert response.status_code == 500
    assert _stored(storage, created['cover_image'])
    assert len(_files_in(storage)) == 1
