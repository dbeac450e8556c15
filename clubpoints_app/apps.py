# file: clubpoints_app/apps.py
"""App configuration for the club points application.

Key points:
    * ``name`` is fixed to ``"clubpoints_app"`` to keep the app label and
      import paths stable.
    * ``default_auto_field`` is ``BigAutoField``.

No signals are registered; scoring runs only when explicitly requested
(admin action, management command or service call).
"""

from __future__ import annotations

from django.apps import AppConfig


# --- AppConfig -------------------------------------------------------------

class ClubpointsAppConfig(AppConfig):
    """App registration and defaults for ``clubpoints_app``."""

    default_auto_field: str = "django.db.models.BigAutoField"
    name: str = "clubpoints_app"
    verbose_name: str = "Klubové body"
