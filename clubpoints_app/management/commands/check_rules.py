# file: clubpoints_app/management/commands/check_rules.py
"""Report rule configuration problems; exits non-zero when any is found."""

from __future__ import annotations

from typing import Any

from django.core.management.base import BaseCommand, CommandError

from clubpoints_app.services.rules_admin import review_rules


class Command(BaseCommand):
    help = "Zkontroluje konfiguraci pravidel (proměnné, typy hodnot, pozice, násobení)."

    def handle(self, *args: Any, **options: Any) -> None:  # type: ignore[override]
        findings = review_rules()
        if not findings:
            self.stdout.write(self.style.SUCCESS("✅ Všechna pravidla jsou v pořádku."))
            return
        for finding in findings:
            self.stdout.write(f"⚠️  {finding}")
        raise CommandError(f"Nalezeno problémů: {len(findings)}.")
