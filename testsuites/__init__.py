"""
Test suites package.

Holds the element resolution framework (`testsuites.ui_testing.framework`),
its page objects and the unit and browser test suites. Kept importable so
`run_tests.py`, IDEs and CI jobs can reach the framework modules directly.
"""
