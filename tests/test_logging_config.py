import json
import logging

from salon_admin.utils.logging_config import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord("salon_admin.importer", logging.INFO, __file__, 1, "Import %s", ("done",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test the structured log formatter"""

    def test_extra_fields_become_keys(self):
        """Fields passed via extra= are emitted at the top level"""
        output = json.loads(JSONFormatter("Salon Admin", "1.0.0").format(_record(user_id=4, total_rows=10)))

        assert output["message"] == "Import done"
        assert output["level"] == "INFO"
        assert output["logger"] == "salon_admin.importer"
        assert output["app"] == "Salon Admin"
        assert output["user_id"] == 4
        assert output["total_rows"] == 10
        assert "msg" not in output

    def test_unserialisable_values_are_stringified(self):
        """Non-JSON values fall back to str()"""
        output = json.loads(JSONFormatter().format(_record(path=object())))
        assert output["path"].startswith("<object object")


class TestSetupLogging:
    """Test handler installation"""

    def test_file_logging_writes_json(self, app, tmp_path):
        """A rotating file handler is attached when file logging is on"""
        app.config.update({"ENABLE_FILE_LOGGING": True, "LOG_DIR": str(tmp_path), "LOG_FORMAT": "json"})
        setup_logging(app)

        app.logger.warning("Import failed", extra={"duplicate_strategy": "skip"})
        for handler in app.logger.handlers:
            handler.flush()

        lines = (tmp_path / "salon_admin.log").read_text().splitlines()
        entry = json.loads(lines[-1])
        assert entry["message"] == "Import failed"
        assert entry["duplicate_strategy"] == "skip"

        app.config.update({"ENABLE_FILE_LOGGING": False})
        setup_logging(app)

    def test_repeated_setup_does_not_duplicate_handlers(self, app):
        """Calling setup twice replaces the handlers it installed"""
        app.config.update({"ENABLE_CONSOLE_LOGGING": True})
        setup_logging(app)
        setup_logging(app)

        ours = [h for h in app.logger.handlers if getattr(h, "_salon_admin_handler", False)]
        assert len(ours) == 1
        assert app.logger.propagate is False

        app.config.update({"ENABLE_CONSOLE_LOGGING": False})
        setup_logging(app)
        assert app.logger.propagate is True
