"""
Create the platform super admin directly against the database.

Usage:
    python create_super_admin.py <email> <password> [name]
"""
import sys

from payhub import create_app
from payhub.errors import PayHubError
from payhub.services.credentials import create_super_admin


def main():
    print("\n" + "=" * 70)
    print("  Create Super Admin")
    print("=" * 70)

    if len(sys.argv) < 3:
        print("\nUsage: python create_super_admin.py <email> <password> [name]")
        print("\nExample:")
        print("  python create_super_admin.py admin@payhub.ng 'StrongPass123' 'Platform Admin'")
        return 1

    email = sys.argv[1].strip().lower()
    password = sys.argv[2]
    name = sys.argv[3] if len(sys.argv) > 3 else "Super Admin"

    if len(password) < 8:
        print("\nPassword must be at least 8 characters")
        return 1

    app = create_app()
    with app.app_context():
        try:
            user, _ = create_super_admin(email, password, name)
        except PayHubError as err:
            print(f"\nCould not create super admin: {err.message}")
            return 1

        print("\nSuper admin created successfully!")
        print(f"   Email: {user.email}")
        print(f"   User ID: {user.id}")
    print("\n" + "=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
