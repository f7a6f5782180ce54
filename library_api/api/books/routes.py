"""
Routes for the book catalog.

Writes accept multipart forms so a cover image and the book file can be
uploaded with the metadata; JSON bodies are accepted when no files are sent.
"""
from flask import current_app, request
from flask_jwt_extended import jwt_required
from flask_restx import Resource, fields
from werkzeug.datastructures import FileStorage

from library_api.errors import LibraryError, ValidationError
from library_api.models import Book
from library_api.utils.auth import staff_required

from . import book_ns

TEXT_FIELDS = ('title', 'author', 'publisher', 'publish_date', 'isbn')
REQUIRED_FIELDS = ('title', 'author')

# Upload field name -> (Book column, storage file type)
UPLOAD_FIELDS = {
    'CoverImage': ('cover_image', 'image'),
    'BookPDF': ('book_pdf', 'pdf'),
}

book_model = book_ns.model('Book', {
    'id': fields.Integer(description='Book ID'),
    'title': fields.String(description='Title'),
    'author': fields.String(description='Author'),
    'publisher': fields.String(description='Publisher'),
    'publish_date': fields.String(description='Publication date'),
    'isbn': fields.String(description='ISBN'),
    'cover_image': fields.String(description='Stored cover image path'),
    'book_pdf': fields.String(description='Stored book file path'),
    'tags': fields.List(fields.String, description='Tags'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

message_model = book_ns.model('BookMessage', {
    'message': fields.String(description='Result message'),
})

# Multipart form used for documentation of the write endpoints
book_form = book_ns.parser()
for _name in TEXT_FIELDS:
    book_form.add_argument(_name, location='form', type=str)
book_form.add_argument('tags', location='form', type=str, action='append', help='Tag (repeatable)')
book_form.add_argument('CoverImage', location='files', type=FileStorage, help='jpg, jpeg or png')
book_form.add_argument('BookPDF', location='files', type=FileStorage, help='pdf or doc')


def _books():
    return current_app.extensions['books']


def _parse_tags(raw):
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValidationError("tags must be a list of strings")
    tags = []
    for item in raw:
        if not isinstance(item, str):
            raise ValidationError("tags must be a list of strings")
        tags.extend(tag.strip() for tag in item.split(',') if tag.strip())
    return tags


def _read_fields():
    """Collect supplied book fields from a form or JSON body."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        raw_tags = data.get('tags')
    else:
        data = request.form
        raw_tags = data.getlist('tags') or None

    values = {}
    for name in TEXT_FIELDS:
        value = data.get(name)
        if value is not None:
            if not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")
            values[name] = value.strip()
    tags = _parse_tags(raw_tags)
    if tags is not None:
        values['tags'] = tags
    return values


def _remove_files(paths):
    storage = current_app.extensions['storage']
    for path in paths:
        storage.remove(path)


def _store_uploads():
    """Save any uploaded files, returning the new paths by column.

    If one upload is rejected, the files already saved for this request are removed.
    """
    storage = current_app.extensions['storage']
    stored = {}
    try:
        for field_name, (column, file_type) in UPLOAD_FIELDS.items():
            upload = request.files.get(field_name)
            if upload is not None and upload.filename:
                stored[column] = storage.save(upload, file_type)
    except LibraryError:
        _remove_files(stored.values())
        raise
    return stored


def _require(values):
    missing = [name for name in REQUIRED_FIELDS if not values.get(name)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _update_book(book, values):
    stored = _store_uploads()
    values.update(stored)
    if not values:
        raise ValidationError("No changes supplied")

    # Replaced files are removed once the row points at the new ones
    replaced = [getattr(book, column) for column in stored if getattr(book, column)]
    book_id = book.id
    try:
        _books().update_one({'id': book_id}, values)
    except LibraryError:
        _remove_files(stored.values())
        raise
    _remove_files(replaced)
    return _books().get_or_raise(book_id, "Book not found")


@book_ns.route('/')
class BookList(Resource):
    """Resource for listing and creating books"""

    @book_ns.doc('list_books', params={
        'author': {'type': 'string', 'description': 'Filter by author'},
        'tag': {'type': 'string', 'description': 'Only books carrying this tag'},
    })
    @book_ns.marshal_list_with(book_model)
    @jwt_required()
    def get(self):
        """List books"""
        filters = {}
        if request.args.get('author'):
            filters['author'] = request.args['author']
        books = _books().find_many(filters, order_by=Book.id)
        tag = request.args.get('tag')
        if tag:
            books = [book for book in books if tag in (book.tags or [])]
        return books

    @book_ns.doc('create_book')
    @book_ns.expect(book_form)
    @book_ns.response(400, 'Validation error')
    @book_ns.marshal_with(book_model, code=201)
    @jwt_required()
    @staff_required()
    def post(self):
        """Create a book, optionally uploading its cover and file (staff only)"""
        values = _read_fields()
        _require(values)
        stored = _store_uploads()
        values.update(stored)
        values.setdefault('tags', [])
        try:
            book_id = _books().insert_one(Book(**values))
        except LibraryError:
            _remove_files(stored.values())
            raise
        current_app.logger.info("Book %s created", book_id)
        return _books().get_or_raise(book_id), 201


@book_ns.route('/<int:id>')
@book_ns.param('id', 'The book identifier')
@book_ns.response(404, 'Book not found')
class BookResource(Resource):
    """Resource for individual book operations"""

    @book_ns.doc('get_book')
    @book_ns.marshal_with(book_model)
    @jwt_required()
    def get(self, id):
        """Get a book"""
        return _books().get_or_raise(id, "Book not found")

    @book_ns.doc('update_book')
    @book_ns.expect(book_form)
    @book_ns.marshal_with(book_model)
    @jwt_required()
    @staff_required()
    def put(self, id):
        """Replace a book's details (staff only)"""
        book = _books().get_or_raise(id, "Book not found")
        values = _read_fields()
        _require(values)
        for name in TEXT_FIELDS:
            values.setdefault(name, None)
        values.setdefault('tags', [])
        return _update_book(book, values)

    @book_ns.doc('patch_book')
    @book_ns.expect(book_form)
    @book_ns.marshal_with(book_model)
    @jwt_required()
    @staff_required()
    def patch(self, id):
        """Partially update a book (staff only)"""
        book = _books().get_or_raise(id, "Book not found")
        return _update_book(book, _read_fields())

    @book_ns.doc('delete_book')
    @book_ns.marshal_with(message_model)
    @jwt_required()
    @staff_required()
    def delete(self, id):
        """Delete a book and its stored files (staff only)"""
        book = _books().get_or_raise(id, "Book not found")
        paths = [book.cover_image, book.book_pdf]
        _books().delete_one({'id': book.id})
        storage = current_app.extensions['storage']
        for path in paths:
            storage.remove(path)
        return {'message': 'Book deleted'}
