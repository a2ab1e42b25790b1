# salon_admin/forms/__init__.py
"""
WTForms package
"""

from .auth import LoginForm
from .importer import DuplicateStrategyForm, ImportUploadForm, WizardActionForm

__all__ = [
    "LoginForm",
    "ImportUploadForm",
    "DuplicateStrategyForm",
    "WizardActionForm",
]
