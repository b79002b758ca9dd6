"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Schools are the parent records of the directory; courses
and reviews are owned by users and attached to exactly one school.
Each domain exposes a router defined in ``api/v1/endpoints`` and a
service in ``services``.  List endpoints share one query compiler
(``services.query_compiler``) and the derived school averages are kept
up to date by ``services.aggregate_service``.
"""

from .main import app  # noqa: F401
