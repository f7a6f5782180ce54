"""
System users and their student/manager profiles.
"""
import logging

from library_api.errors import AuthenticationError, ConflictError, LibraryError, ValidationError
from library_api.models import Manager, Student, User, UserRole

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

PROFILE_FIELDS = ('first_name', 'last_name', 'email')


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _require(data, fields):
    missing = [name for name in fields if not _clean(data.get(name))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _validate_email(email):
    if not isinstance(email, str) or '@' not in email:
        raise ValidationError("Invalid email format")
    return email.strip().lower()


def _validate_password(password):
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


class AccountService:
    """Superuser registration and credential checks."""

    def __init__(self, users, email_service=None):
        self.users = users
        self.email_service = email_service

    def get_user(self, user_id):
        return self.users.get_or_raise(user_id, "User not found")

    def ensure_email_available(self, email, exclude_user_id=None):
        existing = self.users.find_one({'email': email})
        if existing is not None and existing.id != exclude_user_id:
            raise ConflictError("A user with this email already exists")

    def create_user(self, name, email, password, role, is_superuser=False):
        email = _validate_email(email)
        password = _validate_password(password)
        self.ensure_email_available(email)
        user = User(name=name, email=email, password=password, role=role, is_superuser=is_superuser)
        user_id = self.users.insert_one(user)
        logger.info("Registered %s user %s", role, user_id)
        return self.users.get_or_raise(user_id)

    def welcome(self, user):
        if self.email_service is not None:
            self.email_service.send_welcome(user.email, user.name)

    def register_superuser(self, data):
        """
        Register a superuser from name, email and password.

        Returns:
            User: The new user
        """
        _require(data, ('name', 'email', 'password'))
        user = self.create_user(
            _clean(data['name']), data['email'], data['password'],
            role=UserRole.SUPERUSER.value, is_superuser=True,
        )
        self.welcome(user)
        return user

    def authenticate(self, email, password):
        """
        Check login credentials.

        Raises:
            AuthenticationError: Unknown email or wrong password
        """
        if not email or not password:
            raise ValidationError("Missing required fields")
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError("Invalid email or password")
        user = self.users.find_one({'email': _clean(email).lower()})
        if user is None or not user.check_password(password):
            raise AuthenticationError("Invalid email or password")
        return user


class ProfileService:
    """
    Registration and maintenance of one kind of member profile.

    Each profile owns a system user carrying its login email, password and
    role; name and email changes are mirrored onto that user.
    """

    def __init__(self, accounts, profiles, model, role, number_field, label, send_welcome=False):
        self.accounts = accounts
        self.profiles = profiles
        self.model = model
        self.role = role
        self.number_field = number_field
        self.label = label
        self.send_welcome = send_welcome

    def list(self):
        return self.profiles.find_many(order_by=self.model.id)

    def get(self, profile_id):
        return self.profiles.get_or_raise(profile_id, f"{self.label} not found")

    def register(self, data):
        """
        Create a system user and its profile.

        Args:
            data (dict): first_name, last_name, email, password and the
                optional profile number

        Returns:
            The new profile
        """
        _require(data, PROFILE_FIELDS + ('password',))
        first_name, last_name = _clean(data['first_name']), _clean(data['last_name'])
        user = self.accounts.create_user(
            f"{first_name} {last_name}", data['email'], data['password'], role=self.role
        )
        profile = self.model(
            system_user_id=user.id,
            first_name=first_name,
            last_name=last_name,
            email=user.email,
        )
        setattr(profile, self.number_field, _clean(data.get(self.number_field)))
        try:
            profile_id = self.profiles.insert_one(profile)
        except LibraryError:
            self.accounts.users.delete_one({'id': user.id})
            raise

        if self.send_welcome:
            self.accounts.welcome(user)
        return self.get(profile_id)

    def _apply(self, profile, values):
        if 'email' in values:
            values['email'] = _validate_email(values['email'])
            self.accounts.ensure_email_available(values['email'], exclude_user_id=profile.system_user_id)

        profile_id, user_id = profile.id, profile.system_user_id
        self.profiles.update_one({'id': profile_id}, values)

        user_values = {}
        if 'email' in values:
            user_values['email'] = values['email']
        if 'first_name' in values or 'last_name' in values:
            refreshed = self.get(profile_id)
            user_values['name'] = f"{refreshed.first_name} {refreshed.last_name}"
        if user_values:
            self.accounts.users.update_one({'id': user_id}, user_values)
        return self.get(profile_id)

    def replace(self, profile_id, data):
        """Full update: every profile field is set, the number may be cleared."""
        profile = self.get(profile_id)
        _require(data, PROFILE_FIELDS)
        values = {name: _clean(data[name]) for name in PROFILE_FIELDS}
        values[self.number_field] = _clean(data.get(self.number_field))
        return self._apply(profile, values)

    def patch(self, profile_id, data):
        """Partial update: only supplied, non-empty fields change."""
        profile = self.get(profile_id)
        values = {
            name: _clean(data[name])
            for name in PROFILE_FIELDS + (self.number_field,)
            if _clean(data.get(name))
        }
        if not values:
            raise ValidationError("No changes supplied")
        return self._apply(profile, values)

    def delete(self, profile_id):
        """Delete the profile and the system user behind it."""
        profile = self.get(profile_id)
        user_id = profile.system_user_id
        self.profiles.delete_one({'id': profile.id})
        self.accounts.users.delete_one({'id': user_id})
        logger.info("Deleted %s %s (user %s)", self.label.lower(), profile_id, user_id)


def student_service(accounts, students):
    return ProfileService(
        accounts, students, Student, UserRole.STUDENT.value, 'student_id', 'Student', send_welcome=True
    )


def manager_service(accounts, managers):
    return ProfileService(accounts, managers, Manager, UserRole.MANAGER.value, 'manager_id', 'Manager')
