"""
Routes for student registration and profile management.
"""
from flask import current_app
from flask_jwt_extended import jwt_required
from flask_restx import Resource, fields

from library_api.models import STAFF_ROLES
from library_api.utils.auth import ensure_owner_or_roles, staff_required
from library_api.utils.http import json_body

from . import student_ns

student_model = student_ns.model('Student', {
    'id': fields.Integer(description='Student profile ID'),
    'system_user_id': fields.Integer(description='Login user ID'),
    'first_name': fields.String(description='First name'),
    'last_name': fields.String(description='Last name'),
    'email': fields.String(description='Email address'),
    'student_id': fields.String(description='Student number'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

student_register_model = student_ns.model('StudentRegister', {
    'first_name': fields.String(required=True, description='First name'),
    'last_name': fields.String(required=True, description='Last name'),
    'email': fields.String(required=True, description='Email address, used to log in'),
    'password': fields.String(required=True, description='Password'),
    'student_id': fields.String(description='Student number'),
})

student_update_model = student_ns.model('StudentUpdate', {
    'first_name': fields.String(description='First name'),
    'last_name': fields.String(description='Last name'),
    'email': fields.String(description='Email address'),
    'student_id': fields.String(description='Student number'),
})

message_model = student_ns.model('StudentMessage', {
    'message': fields.String(description='Result message'),
})


def _students():
    return current_app.extensions['students']


@student_ns.route('/')
class StudentList(Resource):
    """Resource for registering and listing students"""

    @student_ns.doc('register_student', security=None)
    @student_ns.expect(student_register_model)
    @student_ns.response(400, 'Validation error')
    @student_ns.response(409, 'Email already registered')
    @student_ns.marshal_with(student_model, code=201)
    def post(self):
        """Register a new student"""
        student = _students().register(json_body())
        current_app.logger.info("Student %s registered", student.id)
        return student, 201

    @student_ns.doc('list_students')
    @student_ns.marshal_list_with(student_model)
    @jwt_required()
    @staff_required()
    def get(self):
        """List all students (staff only)"""
        return _students().list()


@student_ns.route('/<int:id>')
@student_ns.param('id', 'The student profile identifier')
@student_ns.response(404, 'Student not found')
class StudentResource(Resource):
    """Resource for individual student operations"""

    @student_ns.doc('get_student')
    @student_ns.marshal_with(student_model)
    @jwt_required()
    def get(self, id):
        """Get a student (staff or the student)"""
        student = _students().get(id)
        ensure_owner_or_roles(student.system_user_id, *STAFF_ROLES)
        return student

    @student_ns.doc('update_student')
    @student_ns.expect(student_update_model)
    @student_ns.marshal_with(student_model)
    @jwt_required()
    def put(self, id):
        """Replace a student's profile (staff or the student)"""
        student = _students().get(id)
        ensure_owner_or_roles(student.system_user_id, *STAFF_ROLES)
        return _students().replace(id, json_body())

    @student_ns.doc('patch_student')
    @student_ns.expect(student_update_model)
    @student_ns.marshal_with(student_model)
    @jwt_required()
    def patch(self, id):
        """Partially update a student's profile (staff or the student)"""
        student = _students().get(id)
        ensure_owner_or_roles(student.system_user_id, *STAFF_ROLES)
        return _students().patch(id, json_body())

    @student_ns.doc('delete_student')
    @student_ns.marshal_with(message_model)
    @jwt_required()
    @staff_required()
    def delete(self, id):
        """Delete a student and their login (staff only)"""
        _students().delete(id)
        return {'message': 'Student deleted'}
