# salon_admin/models/admin.py

from flask import current_app

from .base import BaseModel, db


class AdminLog(BaseModel):
    """Audit trail of actions taken by admins in the front end"""

    __tablename__ = "admin_logs"

    id = db.Column(db.Integer, primary_key=True)
    admin_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    action = db.Column(db.String(100), nullable=False, index=True)
    details = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)

    admin_user = db.relationship("User", back_populates="admin_logs")

    def __repr__(self):
        return f"<AdminLog {self.action} by user {self.admin_user_id}>"

    @staticmethod
    def log_action(admin_user_id, action, details=None, ip_address=None, user_agent=None):
        """Persist an audit entry; returns False instead of raising on failure"""
        try:
            log_entry = AdminLog(
                admin_user_id=admin_user_id,
                action=action,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            db.session.add(log_entry)
            db.session.commit()
            return True
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to log admin action {action}: {str(e)}")
            return False
