"""
Book model for the library catalog.
"""
from library_api import db

from .base import BaseModel


class Book(BaseModel):
    """
    A catalog entry, optionally with an uploaded cover image and PDF.

    Attributes:
        title (str): Book title
        author (str): Author name
        publisher (str): Publisher name
        publish_date (str): Publication date as supplied (free text)
        isbn (str): ISBN
        cover_image (str): Stored path of the cover image
        book_pdf (str): Stored path of the book file
        tags (list): Tag strings
    """
    __tablename__ = 'books'

    title = db.Column(db.String(255), nullable=False, index=True)
    author = db.Column(db.String(255), nullable=True, index=True)
    publisher = db.Column(db.String(255), nullable=True)
    publish_date = db.Column(db.String(50), nullable=True)
    isbn = db.Column(db.String(32), nullable=True, index=True)
    cover_image = db.Column(db.String(512), nullable=True)
    book_pdf = db.Column(db.String(512), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)

    def __repr__(self):
        return f"<Book {self.title!r}>"
