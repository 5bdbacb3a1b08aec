"""
================================================================================
E2E Tools
================================================================================

Infrastructure shared by the UI end-to-end suites.

Modules:
    - common: Configuration loading and loguru logger setup
    - report_tools: Allure attachment helpers

Example:
    from e2e_tools.common import init_logger
    from e2e_tools.common.config_loader import ConfigLoader
    from e2e_tools.report_tools.allure_utils import attach_exported

    init_logger()
    timeout = ConfigLoader().get("interaction.default_timeout", 10000)

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
