# file: clubpoints_app/management/commands/score_games.py
"""Score completed games from the command line.

CLI options (Czech UX preserved):
    ``--game-id`` (repeatable) • ``--all-completed`` • ``--dry-run``.

``--all-completed`` scores every game in the COMPLETED state; failures of
single games are reported and the remaining games are still scored. With
``--dry-run`` the awards are computed and printed but nothing is saved.
"""

from __future__ import annotations

import argparse
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from clubpoints_app.models import Game, GameStatus, PointType
from clubpoints_app.services.errors import RulesEngineError
from clubpoints_app.services.scoring import compute_game_points, ensure_scoreable, score_game


class Command(BaseCommand):
    """Management command running the scoring engine for selected games."""

    help = "Spočítá body hráčů za pravidla pro odehrané zápasy."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:  # type: ignore[override]
        parser.add_argument(
            "--game-id", type=int, action="append", dest="game_ids", help="ID zápasu (lze zadat vícekrát)."
        )
        parser.add_argument(
            "--all-completed", action="store_true", help="Obodovat všechny odehrané, dosud neobodované zápasy."
        )
        parser.add_argument("--dry-run", action="store_true", help="Jen vypíše body, nic neukládá.")

    def _target_games(self, options: dict[str, Any]) -> list[Game]:
        game_ids = options.get("game_ids") or []
        if game_ids:
            games = list(Game.objects.filter(pk__in=game_ids).select_related("team"))
            missing = set(game_ids) - {g.pk for g in games}
            if missing:
                raise CommandError(f"Zápasy neexistují: {', '.join(map(str, sorted(missing)))}.")
            return games
        if options.get("all_completed"):
            return list(Game.objects.filter(status=GameStatus.COMPLETED).select_related("team").order_by("starts_at"))
        raise CommandError("Zadej --game-id nebo --all-completed.")

    def _dry_run(self, game: Game) -> None:
        ensure_scoreable(game)
        rows = [r for r in compute_game_points(game) if r.point_type == PointType.TEAM]
        self.stdout.write(f"🧮 {game}: {len(rows)} ocenění")
        for row in rows:
            self.stdout.write(f"   • hráč {row.player_id}: {row.points} b. – {row.notes}")

    def handle(self, *args: Any, **options: Any) -> None:  # type: ignore[override]
        dry: bool = bool(options.get("dry_run"))
        games = self._target_games(options)
        if not games:
            self.stdout.write("ℹ️  Žádné zápasy k obodování.")
            return

        failures: list[str] = []
        scored = 0
        for game in games:
            try:
                if dry:
                    self._dry_run(game)
                    continue
                rows = score_game(game)
            except RulesEngineError as exc:
                failures.append(f"{game}: {exc}")
                self.stderr.write(f"❌ {game}: {exc}")
                continue
            scored += 1
            self.stdout.write(f"✅ {game}: uloženo {len(rows)} záznamů")

        if dry:
            self.stdout.write("   (dry‑run: nic se neuložilo)")
        else:
            self.stdout.write(f"Hotovo. Obodováno zápasů: {scored}")
        if failures:
            raise CommandError(f"Nepodařilo se obodovat {len(failures)} zápas(y).")
