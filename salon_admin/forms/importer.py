# salon_admin/forms/importer.py
"""
Forms backing the appointment CSV import wizard.

Upload acceptance (type, size, count) is decided by the wizard controller so
every rejection reaches the admin with its specific reason; these forms only
carry the fields and the CSRF token.
"""

from flask_wtf import FlaskForm
from flask_wtf.file import FileField
from wtforms import RadioField, SubmitField
from wtforms.validators import DataRequired

from salon_admin.importer.duplicates import DuplicateStrategy


class WizardActionForm(FlaskForm):
    """Button-only form for stage actions (validate, back, next, finish...)"""

    submit = SubmitField("Continue")


class ImportUploadForm(FlaskForm):
    file = FileField("CSV File", render_kw={"accept": ".csv,text/csv"})
    submit = SubmitField("Upload")


class DuplicateStrategyForm(FlaskForm):
    """Single global policy applied to every detected duplicate"""

    duplicate_strategy = RadioField(
        "Duplicate Handling Strategy",
        choices=[(strategy.value, strategy.description) for strategy in DuplicateStrategy],
        default=DuplicateStrategy.SKIP.value,
        validators=[DataRequired(message="Choose how duplicates should be handled.")],
    )
    submit = SubmitField("Continue")
