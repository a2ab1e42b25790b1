import pytest
from werkzeug.datastructures import MultiDict

from salon_admin.forms import DuplicateStrategyForm, ImportUploadForm, LoginForm


class TestLoginForm:
    """Test the staff sign-in form"""

    def test_unbound_form_is_empty(self):
        form = LoginForm()
        assert (form.username.data, form.password.data) == (None, None)
        assert form.remember_me.data is False

    def test_valid_credentials_pass(self):
        form = LoginForm(data={"username": "front_desk-2", "password": "salonpass"})
        assert form.validate() is True

    @pytest.mark.parametrize(
        "data, field, message",
        [
            ({"password": "salonpass"}, "username", "Username is required."),
            ({"username": "reception"}, "password", "Password is required."),
            ({"username": "ab", "password": "salonpass"}, "username", "Username must be between 3 and 64 characters."),
            (
                {"username": "stylist@salon", "password": "salonpass"},
                "username",
                "Username can only contain letters, numbers, underscores, and hyphens.",
            ),
            ({"username": "reception", "password": "short"}, "password", "Password must be at least 6 characters long."),
        ],
    )
    def test_rejected_input_reports_field_error(self, data, field, message):
        """Each bad field carries its own message"""
        form = LoginForm(data=data)
        assert form.validate() is False
        assert message in form.errors[field]

    def test_overlong_username_rejected(self):
        assert LoginForm(data={"username": "s" * 65, "password": "salonpass"}).validate() is False

    def test_submitted_username_is_trimmed(self):
        """Whitespace pasted around the username is dropped before validation"""
        form = LoginForm(formdata=MultiDict({"username": "  reception  ", "password": "salonpass"}))
        assert form.validate() is True
        assert form.username.data == "reception"


class TestDuplicateStrategyForm:
    """Test the duplicate handling strategy form"""

    def test_defaults_to_skip(self):
        """Skip is preselected"""
        form = DuplicateStrategyForm()
        assert form.duplicate_strategy.data == "skip"

    def test_choices_follow_strategies(self):
        """Both strategies are offered with their descriptions"""
        form = DuplicateStrategyForm()
        assert form.duplicate_strategy.choices == [
            ("skip", "Skip duplicates"),
            ("overwrite", "Overwrite duplicates"),
        ]

    def test_accepts_overwrite(self):
        """Overwrite validates"""
        form = DuplicateStrategyForm(formdata=MultiDict({"duplicate_strategy": "overwrite"}))
        assert form.validate() is True
        assert form.duplicate_strategy.data == "overwrite"

    def test_rejects_unknown_strategy(self):
        """Anything other than skip or overwrite is invalid"""
        form = DuplicateStrategyForm(formdata=MultiDict({"duplicate_strategy": "merge"}))
        assert form.validate() is False
        assert "duplicate_strategy" in form.errors


class TestImportUploadForm:
    """Test the upload form"""

    def test_file_input_accepts_csv_only(self):
        """The browser picker is narrowed to CSV files"""
        form = ImportUploadForm()
        assert 'accept=".csv,text/csv"' in form.file()
