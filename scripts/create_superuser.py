#!/usr/bin/env python
"""
Script to create or promote a superuser.

Usage:
    python scripts/create_superuser.py <email> <password> [name]
"""
import sys

from library_api import create_app
from library_api.errors import LibraryError
from library_api.models import UserRole


def main(argv):
    if len(argv) < 3:
        print(__doc__)
        return 1
    email, password = argv[1], argv[2]
    name = argv[3] if len(argv) > 3 else 'Administrator'

    app = create_app()
    with app.app_context():
        accounts = app.extensions['accounts']
        existing = accounts.users.find_one({'email': email.lower()})
        if existing is None:
            try:
                user = accounts.register_superuser({'name': name, 'email': email, 'password': password})
            except LibraryError as exc:
                print(f'Could not create superuser: {exc.message}')
                return 1
            print(f'Superuser created with ID: {user.id}')
        elif existing.role != UserRole.SUPERUSER.value:
            accounts.users.update_one(
                {'id': existing.id}, {'role': UserRole.SUPERUSER.value, 'is_superuser': True}
            )
            print(f'Updated user ID: {existing.id} with superuser privileges')
        else:
            print(f'Superuser already exists with ID: {existing.id}')
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
