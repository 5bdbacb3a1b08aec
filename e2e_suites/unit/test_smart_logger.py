import json
import threading

import pytest

from e2e_suites.ui_testing.framework.errors import wrap_error
from e2e_suites.ui_testing.framework.page_inspector import PageInspector
from e2e_suites.ui_testing.framework.smart_logger import (
    LogBuffer,
    SmartLogger,
    categorize_log,
    categorize_performance,
    generate_tags,
    sanitize_value,
)


def _attachment(attachments, name):
    return next(a for a in attachments if a.name == name)


@pytest.mark.parametrize("message, level, expected", [
    ("User click", "ACTION", "USER_ACTION"),
    ("Navigated from / to /home", "NAVIGATION", "NAVIGATION"),
    ("API GET /items - 200", "INFO", "API"),
    ("Assertion: title matches", "PASS", "ASSERTION"),
    ("Wait: displayed", "INFO", "TIMING"),
    ("Performance: render = 20ms", "INFO", "PERFORMANCE"),
    ("Something broke", "ERROR", "ERROR"),
    ("Test started", "INFO", "GENERAL"),
])
def test_categorize_log(message, level, expected):
    assert categorize_log(message, level) == expected


def test_generate_tags():
    assert generate_tags("plain", "INFO") == ["info"]
    assert generate_tags("Took screenshot", "ACTION", {"element": "#a", "suggestions": ["x"]}) == [
        "action", "element-interaction", "auto-diagnosed", "visual",
    ]
    assert generate_tags("API", "INFO", {"method": "GET", "status": 200}) == ["info", "api-call"]


@pytest.mark.parametrize("value, expected", [
    ("abc", "abc"),
    ("123456", "123456"),
    ("1234567", "*******"),
    ("mypassword", "**********"),
    ("password", "********"),
    (42, "42"),
])
def test_sanitize_value(value, expected):
    assert sanitize_value(value) == expected


@pytest.mark.parametrize("ms, expected", [
    (999, "fast"), (1000, "moderate"), (2999, "moderate"), (4999, "slow"), (5000, "very-slow"),
])
def test_categorize_performance(ms, expected):
    assert categorize_performance(ms) == expected


def test_entries_are_scoped_to_test(log_buffer):
    first = SmartLogger(buffer=log_buffer)
    second = SmartLogger(buffer=log_buffer)
    first.initialize_test("test_one")
    second.initialize_test("test_two")

    first.log("INFO", "from one")
    second.log("INFO", "from two")

    assert [e.message for e in first.entries()] == ["Test started", "from one"]
    assert [e.message for e in second.entries()] == ["Test started", "from two"]

    assert first.clear_test_logs() == 2
    assert first.entries() == []
    assert [e.message for e in second.entries()] == ["Test started", "from two"]


def test_concurrent_logging_keeps_every_entry(log_buffer):
    def worker(name):
        smart_logger = SmartLogger(buffer=log_buffer, test_context=name)
        for i in range(50):
            smart_logger.log("DEBUG", f"{name} entry {i}")

    threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(log_buffer) == 200
    assert all(len(log_buffer.entries(f"t{n}")) == 50 for n in range(4))


def test_unknown_level_rejected(smart_logger):
    with pytest.raises(ValueError):
        smart_logger.log("VERBOSE", "nope")


def test_log_action_masks_and_numbers_steps(smart_logger):
    smart_logger.log_action("fill", 'selector "#user"', "bob")
    entry = smart_logger.log_action("fill", 'selector "#password"', "hunter22")

    assert entry.message == "User fill"
    assert entry.category == "USER_ACTION"
    assert entry.context["value"] == "********"
    assert entry.context["step"] == 2
    assert "hunter22" not in json.dumps([e.context for e in smart_logger.entries()])


def test_specialised_entries(smart_logger):
    assert smart_logger.log_api_call("GET", "/a", 200).level == "INFO"
    assert smart_logger.log_api_call("GET", "/b", 302).level == "WARN"
    failed = smart_logger.log_api_call("POST", "/c", 500)
    assert failed.level == "ERROR"
    assert failed.context["success"] is False
    assert "api-call" in failed.tags

    passed = smart_logger.log_assertion("count", 3, 3, True)
    assert passed.level == "PASS"
    assert passed.context["comparison"] == "Expected: 3, Actual: 3"
    mismatch = smart_logger.log_assertion("count", 3, "3", False)
    assert mismatch.level == "FAIL"
    assert mismatch.context["comparison"].startswith("Type mismatch")

    slow = smart_logger.log_performance("render", 1500, threshold=1000)
    assert (slow.level, slow.category, slow.context["rating"]) == ("WARN", "PERFORMANCE", "moderate")

    wait = smart_logger.log_wait("displayed", "#a", 1000, success=False)
    assert (wait.level, wait.category) == ("WARN", "TIMING")

    nav = smart_logger.log_navigation("/a", "/b", load_time=6000)
    assert nav.context["performance"] == "very-slow"


@pytest.mark.asyncio
async def test_log_error_without_page(smart_logger):
    entry = await smart_logger.log_error(RuntimeError("boom"))

    assert entry.level == "ERROR"
    assert entry.category == "ERROR"
    assert entry.context["name"] == "RuntimeError"
    assert entry.context["stack"] == ["RuntimeError: boom"]
    assert "suggestions" not in entry.context


@pytest.mark.asyncio
async def test_log_error_uses_cause_traceback(smart_logger):
    try:
        raise RuntimeError("Element is not attached to the DOM")
    except RuntimeError as e:
        wrapped = wrap_error("click", 'selector "#x"', e)

    entry = await smart_logger.log_error(wrapped)

    assert entry.context["stack"][0].startswith("Traceback")
    assert len(entry.context["stack"]) <= 5


@pytest.mark.asyncio
async def test_log_error_with_inspection_and_error_analysis(smart_logger, fake_page):
    fake_page.url = "https://app.example.test/login"
    fake_page.add(".login-error", text="Invalid username or password")

    await smart_logger.log_error(RuntimeError("click failed for selector \"#submit\""), fake_page)
    attachments = smart_logger.export_for_reporting()

    entry = smart_logger.entries()[-1]
    assert entry.context["page_inspection"]["error_elements"] == [
        {"selector": ".login-error", "text": "Invalid username or password"},
    ]
    assert "auto-diagnosed" in entry.tags

    analysis = _attachment(attachments, "Error Analysis & Suggestions")
    assert analysis.mime_type == "text/markdown"
    assert "Invalid username or password" in analysis.content
    assert "Login page detected - check credentials and form submission" in analysis.content
    assert "verify the username and password used by the test" in analysis.content


@pytest.mark.asyncio
async def test_log_error_survives_inspection_failure(smart_logger):
    class ExplodingInspector(PageInspector):
        def __init__(self):
            pass

        async def inspect_page_on_error(self, error_context):
            raise RuntimeError("inspector crashed")

    entry = await smart_logger.log_error(RuntimeError("boom"), inspector=ExplodingInspector())

    assert entry.context["inspection_error"] == "inspector crashed"


@pytest.mark.asyncio
async def test_log_error_skips_inspection_when_disabled(smart_logger, fake_page):
    entry = await smart_logger.log_error(RuntimeError("boom"), fake_page, auto_inspect=False)

    assert "page_inspection" not in entry.context


def test_summary(smart_logger):
    smart_logger.initialize_test("test_summary")
    for _ in range(4):
        smart_logger.log("WARN", "flaky thing retried")
    smart_logger.log("ERROR", "hard failure", {"suggestions": ["a", "b"]})
    smart_logger.log("ERROR", "second failure", {"suggestions": ["b"]})
    smart_logger.log_performance("render", 200)
    smart_logger.log_performance("query", 600)

    summary = smart_logger.generate_test_summary()

    assert summary.test_name == "test_summary"
    assert summary.total_logs == 9
    assert summary.logs_by_level == {"INFO": 3, "WARN": 4, "ERROR": 2}
    assert summary.suggestions == ["a", "b"]
    assert summary.performance.total_measurements == 2
    assert summary.performance.average_time == 400
    assert summary.performance.slowest_operation == 600
    assert summary.performance.fastest_operation == 200
    assert summary.insights == [
        "Test encountered 2 error(s) - review error logs for details",
        "High number of warnings (4) - may indicate unstable test conditions",
    ]


def test_export_for_reporting_on_clean_test(smart_logger):
    smart_logger.initialize_test("test_clean")
    smart_logger.log_action("click", 'selector "#go"')

    attachments = smart_logger.export_for_reporting()

    assert [(a.name, a.mime_type) for a in attachments] == [
        ("Detailed Test Logs", "application/json"),
        ("Test Execution Summary", "application/json"),
        ("Test Timeline", "text/html"),
        ("User Actions Log", "text/plain"),
    ]
    logs = json.loads(attachments[0].content)
    assert [entry["message"] for entry in logs] == ["Test started", "User click"]
    assert json.loads(attachments[1].content)["total_logs"] == 2
    assert "Step 1: User click" in attachments[3].content
    assert 'Element: selector "#go"' in attachments[3].content


def test_timeline_escapes_markup(smart_logger):
    smart_logger.log("INFO", "<script>alert(1)</script>")

    timeline = _attachment(smart_logger.export_for_reporting(), "Test Timeline")

    assert "<script>alert" not in timeline.content
    assert "&lt;script&gt;" in timeline.content


def test_performance_attachment_only_with_measurements(smart_logger):
    smart_logger.log_performance("render", 1200)

    metrics = _attachment(smart_logger.export_for_reporting(), "Performance Metrics")

    assert "Total Measurements: 1" in metrics.content
    assert "PERFORMANCE RATING: Good" in metrics.content


def test_new_loggers_share_the_process_buffer():
    one = SmartLogger(test_context="shared-a")
    two = SmartLogger(test_context="shared-b")

    assert one.buffer is two.buffer
    assert isinstance(one.buffer, LogBuffer)
