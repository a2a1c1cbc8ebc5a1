from logger import LogCategory, LoggableMixin, get_logger, setup_logger


def test_logger_accepts_string_category(tmp_path):
    log_dir = tmp_path / "logs"
    logger = setup_logger(log_dir=log_dir)

    logger.info("String category entry", category="storage", extra_field="value")

    for handler in logger.logger.handlers:
        handler.flush()

    log_file = log_dir / "panelkit.log"
    assert log_file.exists()
    content = log_file.read_text(encoding="utf-8")
    assert "String category entry" in content
    assert '"category": "STORAGE"' in content
    assert '"field_extra_field": "value"' in content


def test_errors_go_to_the_error_log(tmp_path):
    logger = setup_logger(log_dir=tmp_path)

    try:
        raise RuntimeError("store offline")
    except RuntimeError as exc:
        logger.error("Query failed", exception=exc, category=LogCategory.STORAGE)
    logger.info("Routine message")

    for handler in logger.logger.handlers:
        handler.flush()

    errors = (tmp_path / "panelkit_errors.log").read_text(encoding="utf-8")
    assert "Query failed" in errors
    assert "RuntimeError" in errors
    assert "Routine message" not in errors


def test_mixin_prefixes_class_name_and_default_category(read_log):
    class Pump(LoggableMixin):
        log_category = LogCategory.HARDWARE

        def __init__(self):
            LoggableMixin.__init__(self)

    Pump().log_info("started", speed=1200)

    content = read_log()
    assert "[Pump] started" in content
    assert '"category": "HARDWARE"' in content
    assert '"field_speed": 1200' in content


def test_mixin_follows_logger_replacement(tmp_path):
    class Valve(LoggableMixin):
        pass

    valve = Valve()
    replacement = setup_logger(log_dir=tmp_path / "second")

    valve.log_warning("stuck")

    assert get_logger() is replacement
    for handler in replacement.logger.handlers:
        handler.flush()
    assert "[Valve] stuck" in (tmp_path / "second" / "panelkit.log").read_text(encoding="utf-8")


def test_timer_logs_completion(read_log):
    with get_logger().timer("estimate"):
        pass

    assert "Completed operation: estimate" in read_log()


def test_user_actions_are_categorised(read_log):
    get_logger().log_user_action("numpad_clear", {"module": "VirtualNumpad"})

    content = read_log()
    assert "USER ACTION: numpad_clear" in content
    assert '"category": "USER_ACTION"' in content
