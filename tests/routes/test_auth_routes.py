from salon_admin.importer import IMPORTER_EXTENSION_KEY
from salon_admin.models import User, db


class TestLogin:
    """Test the sign-in and sign-out routes"""

    def test_login_page_renders(self, client):
        """Test GET /login"""
        response = client.get("/login")
        assert response.status_code == 200
        assert b"Sign In" in response.data

    def test_index_requires_login(self, client):
        """Test anonymous users are sent to the login page"""
        response = client.get("/")
        assert response.status_code == 302
        assert response.headers["Location"] == "/login"

    def test_login_success_logs_admin_action(self, client, admin_user, admin_logs):
        """Test successful admin login redirects and is audited"""
        db.session.add(admin_user)
        db.session.commit()

        response = client.post("/login", data={"username": "admin", "password": "adminpass123"})

        assert response.status_code == 302
        assert response.headers["Location"] == "/"
        assert admin_logs() == ["LOGIN"]
        assert db.session.get(User, admin_user.id).last_login is not None

    def test_login_follows_safe_next(self, client, admin_user):
        """Test relative next URLs are honoured and absolute ones ignored"""
        db.session.add(admin_user)
        db.session.commit()

        response = client.post(
            "/login?next=/admin/appointments/import/",
            data={"username": "admin", "password": "adminpass123"},
        )
        assert response.headers["Location"] == "/admin/appointments/import/"

        client.get("/logout")
        response = client.post(
            "/login?next=https://evil.example/",
            data={"username": "admin", "password": "adminpass123"},
        )
        assert response.headers["Location"] == "/"

    def test_login_bad_password(self, client, admin_user, admin_logs):
        """Test invalid credentials return 401"""
        db.session.add(admin_user)
        db.session.commit()

        response = client.post("/login", data={"username": "admin", "password": "wrongpass"})

        assert response.status_code == 401
        assert b"Invalid username or password." in response.data
        assert admin_logs() == []

    def test_login_inactive_user(self, client, staff_user):
        """Test deactivated accounts are refused"""
        staff_user.is_active = False
        db.session.add(staff_user)
        db.session.commit()

        response = client.post("/login", data={"username": "groomer", "password": "groomerpass123"})

        assert response.status_code == 403

    def test_logout_discards_wizard_session(self, logged_in_admin, importer_app):
        """Test logging out drops the admin's import wizard state"""
        client, admin = logged_in_admin
        client.get("/admin/appointments/import/")
        store = importer_app.extensions[IMPORTER_EXTENSION_KEY]["store"]
        assert admin.id in store

        response = client.get("/logout")

        assert response.status_code == 302
        assert admin.id not in store
