import logging
import sys

from iiif_pyramid_core import logger as logger_mod
from iiif_pyramid_core.logger import get_logger, preview_body, setup_logging


def _clear_handlers():
    for handler in list(logger_mod.app_logger.handlers):
        logger_mod.app_logger.removeHandler(handler)
        handler.close()


def test_module_loggers_share_the_namespace():
    assert get_logger("iiif_pyramid_core.resolver").name == "iiif_pyramid.resolver"
    assert get_logger("iiif_pyramid_cli.cli").name == "iiif_pyramid.cli"
    assert get_logger("iiif_pyramid").name == "iiif_pyramid"
    assert get_logger("scratch").name == "iiif_pyramid.scratch"


def test_repeat_setup_keeps_the_existing_log_file(tmp_path):
    log_file = setup_logging(log_dir=tmp_path / "elsewhere")

    assert log_file == tmp_path / "logs" / logger_mod.LOG_FILE_NAME
    get_logger("scratch").warning("written")
    for handler in logger_mod.app_logger.handlers:
        handler.flush()
    assert "written" in log_file.read_text(encoding="utf-8")
    assert not (tmp_path / "elsewhere").exists()


def test_console_output_goes_to_stderr(tmp_path, capsys):
    _clear_handlers()
    setup_logging(log_dir=tmp_path / "fresh")

    console = [h for h in logger_mod.app_logger.handlers if type(h) is logging.StreamHandler]
    assert len(console) == 1
    assert console[0].stream is sys.stderr
    get_logger("scratch").warning("to the console")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "to the console" in captured.err


def test_file_logging_can_be_disabled(_isolated_config_and_logs, tmp_path):
    _isolated_config_and_logs.data["settings"]["logging"]["to_file"] = False
    _clear_handlers()

    assert setup_logging(log_dir=tmp_path / "unused") is None
    assert not (tmp_path / "unused").exists()


def test_level_override():
    setup_logging("debug")
    assert logger_mod.app_logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger_mod.app_logger.handlers)


def test_preview_body_flattens_and_truncates():
    assert preview_body("<html>\n  <body>Not found</body>\n</html>") == "<html> <body>Not found</body> </html>"
    assert preview_body("") == ""
    assert preview_body("x" * 250, limit=10) == "xxxxxxxxxx... (250 chars)"
