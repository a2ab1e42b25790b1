# salon_admin/models/user.py

from datetime import datetime, timezone

from flask import current_app
from flask_login import UserMixin
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel, db


class User(UserMixin, BaseModel):
    """Salon staff account allowed to sign in to the admin front end"""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    first_name = db.Column(db.String(64), nullable=True)
    last_name = db.Column(db.String(64), nullable=True)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    admin_logs = db.relationship("AdminLog", back_populates="admin_user", lazy="dynamic")

    def __repr__(self):
        return f"<User {self.username}>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def get_full_name(self):
        """Return 'First Last', falling back to the username"""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username

    def update_last_login(self):
        """Stamp the login time; returns False when the commit fails"""
        try:
            self.last_login = datetime.now(timezone.utc)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Database error updating last login for user {self.id}: {str(e)}")
            return False

    @staticmethod
    def find_by_username(username):
        """Find user by username with error handling"""
        try:
            return User.query.filter_by(username=username).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding user by username {username}: {str(e)}")
            return None
