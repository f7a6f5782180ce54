"""
Student and manager profile models.

Each profile is attached to exactly one system user that holds the login
credentials and the role.
"""
from library_api import db

from .base import BaseModel


class Student(BaseModel):
    """
    Student profile.

    Attributes:
        system_user_id (int): Foreign key to the User holding credentials
        first_name (str): First name
        last_name (str): Last name
        email (str): Contact email (mirrors the user's login email)
        student_id (str): Institution-issued student number
    """
    __tablename__ = 'students'

    system_user_id = db.Column(
        db.Integer, db.ForeignKey('system_users.id', ondelete='CASCADE'), nullable=False, unique=True
    )
    first_name = db.Column(db.String(60), nullable=False)
    last_name = db.Column(db.String(60), nullable=False)
    email = db.Column(db.String(120), nullable=False, index=True)
    student_id = db.Column(db.String(50), nullable=True, index=True)

    user = db.relationship('User', backref=db.backref('student_profile', uselist=False, passive_deletes=True))

    def __repr__(self):
        return f"<Student {self.student_id} {self.first_name} {self.last_name}>"


class Manager(BaseModel):
    """
    Manager profile.

    Attributes:
        system_user_id (int): Foreign key to the User holding credentials
        first_name (str): First name
        last_name (str): Last name
        email (str): Contact email (mirrors the user's login email)
        manager_id (str): Staff number
    """
    __tablename__ = 'managers'

    system_user_id = db.Column(
        db.Integer, db.ForeignKey('system_users.id', ondelete='CASCADE'), nullable=False, unique=True
    )
    first_name = db.Column(db.String(60), nullable=False)
    last_name = db.Column(db.String(60), nullable=False)
    email = db.Column(db.String(120), nullable=False, index=True)
    manager_id = db.Column(db.String(50), nullable=True, index=True)

    user = db.relationship('User', backref=db.backref('manager_profile', uselist=False, passive_deletes=True))

    def __repr__(self):
        return f"<Manager {self.manager_id} {self.first_name} {self.last_name}>"
