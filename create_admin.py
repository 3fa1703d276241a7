import os
import argparse
from akvora import create_app
from akvora.models import User
from akvora.models.enums import UserRole
from akvora.extensions import db
from werkzeug.security import generate_password_hash


def create_admin_user(email, password, update=False):
    app = create_app()
    with app.app_context():
        db.create_all()
        email = email.strip().lower()
        # Check if admin already exists
        admin = User.query.filter_by(email=email, role=UserRole.ADMIN).first()
        if not admin:
            admin = User(
                email=email,
                password=generate_password_hash(password),
                role=UserRole.ADMIN,
                first_name="Admin",
                last_name="User",
            )
            db.session.add(admin)
            db.session.commit()
            print("Admin user created successfully!")
        elif update:
            admin.password = generate_password_hash(password)
            db.session.commit()
            print("Admin user updated successfully!")
        else:
            print("Admin user already exists!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or update the AKVORA admin account")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@akvora.com"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--update", action="store_true", help="reset the password if the admin exists")
    args = parser.parse_args()
    if not args.password:
        parser.error("--password (or ADMIN_PASSWORD) is required")
    create_admin_user(args.email, args.password, update=args.update)
