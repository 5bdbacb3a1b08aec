"""
End-to-end test suites package.

Keeps `e2e_suites` importable so that the interaction framework under
`e2e_suites.ui_testing.framework` can be used from page objects, IDEs and
CI runners alike.

All configuration shipped here is demo-safe and contains no secrets.
"""
