"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations built on BasePage / ElementActions.

Author: Automation Team
License: MIT
================================================================================
"""

from .login_page import LoginPage

__all__ = [
    "LoginPage",
]
