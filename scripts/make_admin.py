import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from thesis_portal import create_app
from thesis_portal.extensions import db
from thesis_portal.models import AccountStatus, Role, SystemUser
from thesis_portal.services.accounts import create_system_user

if len(sys.argv) < 3:
    print("usage: make_admin.py EMAIL NAME [PASSWORD]")
    sys.exit(1)

email, name = sys.argv[1].strip().lower(), sys.argv[2]
password = sys.argv[3] if len(sys.argv) > 3 else None

app = create_app()

with app.app_context():
    account = SystemUser.query.filter_by(email=email).first()

    if not account:
        _, password = create_system_user(
            name, email, Role.ADMIN.value, AccountStatus.ACTIVE.value,
            actor_role=Role.ADMIN,
            hash_method=app.config['PASSWORD_HASH_METHOD'],
            password=password,
        )
        print(f"New admin user created, password: {password}")
    else:
        account.role = Role.ADMIN.value
        account.status = AccountStatus.ACTIVE.value
        db.session.commit()
        print("Existing user promoted to admin")
