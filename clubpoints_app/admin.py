# file: clubpoints_app/admin.py
"""Django admin configuration for clubs, games and the scoring rules.

Internal documentation (docstrings, comments) is in **English**. All
user-facing labels/descriptions remain **Czech** to match the target market.
"""

from __future__ import annotations

from typing import Any

import nested_admin
from django.contrib import admin, messages
from django.contrib.admin.utils import unquote
from django.http import HttpResponseRedirect
from django.urls import reverse
from django.utils.html import format_html, format_html_join

from .models import (
    Club,
    Game,
    GamePlayer,
    GamePlayerStats,
    Player,
    PlayerGameRulePoints,
    Rule,
    RuleCondition,
    RulesProfile,
    RulesProfileRule,
    Team,
    Variable,
)
from .services.errors import ProfileInUse, RuleInUse, RulesEngineError
from .services.rules_admin import (
    delete_rule,
    delete_rules_profile,
    effective_rules_for_team,
    profile_delete_blocker,
    review_rules,
    rule_delete_blocker,
)
from .services.scoring import score_game


# ------------------------------------------------------------
# Club / Team / Player
# ------------------------------------------------------------
class TeamInline(admin.TabularInline):
    """Teams listed under a club."""

    model = Team
    extra = 0
    fields = ("name", "default_rules_profile")
    fk_name = "club"


@admin.register(Club)
class ClubAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "default_profile_display")
    search_fields = ("name", "city")
    inlines = [TeamInline]

    @admin.display(description="Výchozí profil")
    def default_profile_display(self, obj: Club) -> str:
        profile = obj.default_rules_profile()
        return profile.name if profile else "—"


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    """Admin for teams with a read-only summary of the rules in force."""

    list_display = ("name", "club", "default_rules_profile")
    list_filter = ("club",)
    search_fields = ("name", "club__name")
    readonly_fields = ("effective_rules",)

    def formfield_for_foreignkey(self, db_field: Any, request: Any, **kwargs: Any):
        """Classic select for the rules profile, limited to active profiles."""
        if db_field.name == "default_rules_profile":
            kwargs["queryset"] = RulesProfile.objects.filter(is_active=True).select_related("club")
        field = super().formfield_for_foreignkey(db_field, request, **kwargs)
        if db_field.name == "default_rules_profile":
            field.empty_label = "— výchozí profil klubu —"
        return field

    @admin.display(description="Platná pravidla")
    def effective_rules(self, obj: Team) -> str:
        """Render the tier that applies and its rules with effective points."""
        if not obj or not obj.pk:
            return "—"
        try:
            rule_set, rows = effective_rules_for_team(obj)
        except RulesEngineError as exc:
            return format_html('<span style="color:#b00;">{}</span>', str(exc))
        source = rule_set.tier.label
        if rule_set.profile is not None:
            source = f"{source}: {rule_set.profile.name}"
        items = format_html_join(
            "",
            "<li>{} – {} b.{}{}</li>",
            (
                (
                    row["name"],
                    row["points"],
                    " (vlastní body)" if row["is_custom_points"] else "",
                    " [neaktivní]" if not row["is_active"] else "",
                )
                for row in rows
            ),
        )
        return format_html("<p><strong>{}</strong></p><ul>{}</ul>", source, items)


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "nickname", "club", "team", "position", "jersey_number")
    list_filter = ("club", "team", "position")
    search_fields = ("first_name", "last_name", "nickname")


# ------------------------------------------------------------
# Games
# ------------------------------------------------------------
class GamePlayerInline(nested_admin.NestedTabularInline):
    model = GamePlayer
    extra = 0
    verbose_name_plural = "Sestava"


class GamePlayerStatsInline(nested_admin.NestedTabularInline):
    model = GamePlayerStats
    extra = 0
    fields = (
        "player",
        "played",
        "position",
        "goals_scored",
        "assists",
        "saves",
        "tackles",
        "green_cards",
        "yellow_cards",
        "red_cards",
        "custom_values",
    )


class RulePointsInline(nested_admin.NestedTabularInline):
    """Read-only list of points awarded in the game."""

    model = PlayerGameRulePoints
    extra = 0
    can_delete = False
    fields = ("player", "rule", "point_type", "points", "is_manual", "notes")
    readonly_fields = fields

    def get_queryset(self, request: Any):  # type: ignore[override]
        return super().get_queryset(request).select_related("player", "rule")

    def has_add_permission(self, request: Any, obj: Any | None = None) -> bool:
        return False


@admin.register(Game)
class GameAdmin(nested_admin.NestedModelAdmin):
    """Admin for games with squad/statistics inlines and a scoring action."""

    list_display = ("id", "starts_at", "team", "opponent", "goals_for", "goals_against", "status")
    list_filter = ("status", "team__club", "team")
    date_hierarchy = "starts_at"
    search_fields = ("team__name", "opponent")
    inlines = [GamePlayerInline, GamePlayerStatsInline, RulePointsInline]
    actions = ["score_selected_games"]

    @admin.action(description="Spočítat body za pravidla pro vybrané zápasy")
    def score_selected_games(self, request: Any, queryset: Any) -> None:
        """Score each selected game; failures are reported per game."""
        scored = 0
        for game in queryset.select_related("team"):
            try:
                score_game(game)
            except RulesEngineError as exc:
                self.message_user(request, f"❌ {game}: {exc}", level=messages.ERROR)
                continue
            scored += 1
        if scored:
            self.message_user(request, f"Obodováno: {scored} zápasů")


# ------------------------------------------------------------
# Variables and rules
# ------------------------------------------------------------
@admin.register(Variable)
class VariableAdmin(admin.ModelAdmin):
    list_display = ("key", "label", "scope", "data_type", "default_value", "is_active")
    list_filter = ("scope", "data_type", "is_active")
    search_fields = ("key", "label")


class GuardedDeleteMixin:
    """Refuse deleting referenced objects before Django confirms the deletion.

    ``deletion_blocker`` returns the Czech reason an object cannot be deleted,
    or ``None``. A blocked object has no delete permission, so the
    ``delete_selected`` action refuses it, and its delete page redirects back
    to the change page with the reason as an error message.
    """

    deletion_blocker = staticmethod(lambda obj: None)

    def has_delete_permission(self, request: Any, obj: Any = None) -> bool:
        if obj is not None and self.deletion_blocker(obj):
            return False
        return super().has_delete_permission(request, obj)

    def delete_view(self, request: Any, object_id: str, extra_context: dict | None = None):
        obj = self.get_object(request, unquote(object_id))
        reason = self.deletion_blocker(obj) if obj is not None else None
        if reason:
            self.message_user(request, reason, level=messages.ERROR)
            opts = self.opts
            return HttpResponseRedirect(
                reverse(
                    f"admin:{opts.app_label}_{opts.model_name}_change",
                    args=[obj.pk],
                    current_app=self.admin_site.name,
                )
            )
        return super().delete_view(request, object_id, extra_context)


class RuleConditionInline(nested_admin.NestedTabularInline):
    model = RuleCondition
    extra = 0
    fields = ("order", "scope", "variable", "operator", "value", "compare_variable")
    sortable_field_name = "order"


@admin.register(Rule)
class RuleAdmin(GuardedDeleteMixin, nested_admin.NestedModelAdmin):
    """Admin for rules with nested conditions and guarded deletion."""

    deletion_blocker = staticmethod(rule_delete_blocker)

    list_display = ("name", "category", "points_awarded", "is_multiplier", "target_scope", "is_active")
    list_filter = ("category", "is_active", "target_scope")
    search_fields = ("name", "description")
    inlines = [RuleConditionInline]
    actions = ["review_selected_rules"]

    @admin.action(description="Zkontrolovat konfiguraci vybraných pravidel")
    def review_selected_rules(self, request: Any, queryset: Any) -> None:
        findings = review_rules(queryset.prefetch_related("conditions"))
        if not findings:
            self.message_user(request, "✅ Vybraná pravidla jsou v pořádku.")
            return
        for finding in findings:
            self.message_user(request, f"⚠️ {finding}", level=messages.WARNING)

    def delete_model(self, request: Any, obj: Rule) -> None:  # type: ignore[override]
        try:
            delete_rule(obj)
        except RuleInUse as exc:
            self.message_user(request, str(exc), level=messages.ERROR)

    def delete_queryset(self, request: Any, queryset: Any) -> None:  # type: ignore[override]
        for rule in queryset:
            self.delete_model(request, rule)


class RulesProfileRuleInline(nested_admin.NestedTabularInline):
    model = RulesProfileRule
    extra = 0
    fields = ("order", "rule", "custom_points", "is_enabled")
    sortable_field_name = "order"

    def formfield_for_foreignkey(self, db_field: Any, request: Any, **kwargs: Any):
        if db_field.name == "rule":
            kwargs["queryset"] = Rule.objects.order_by("category", "name")
        return super().formfield_for_foreignkey(db_field, request, **kwargs)


@admin.register(RulesProfile)
class RulesProfileAdmin(GuardedDeleteMixin, nested_admin.NestedModelAdmin):
    """Admin for club rules profiles with per-rule overrides."""

    deletion_blocker = staticmethod(profile_delete_blocker)

    list_display = ("name", "club", "is_club_default", "is_active", "rules_count")
    list_filter = ("club", "is_club_default", "is_active")
    search_fields = ("name", "club__name")
    inlines = [RulesProfileRuleInline]
    actions = ["make_club_default"]

    @admin.display(description="Pravidel")
    def rules_count(self, obj: RulesProfile) -> int:
        return obj.rules.filter(is_enabled=True).count()

    @admin.action(description="Nastavit jako výchozí profil klubu")
    def make_club_default(self, request: Any, queryset: Any) -> None:
        if queryset.count() != 1:
            self.message_user(request, "Vyber přesně jeden profil.", level=messages.ERROR)
            return
        profile = queryset.first()
        profile.is_club_default = True
        profile.save()
        self.message_user(request, f"Profil '{profile.name}' je nyní výchozí pro klub {profile.club}.")

    def delete_model(self, request: Any, obj: RulesProfile) -> None:  # type: ignore[override]
        try:
            delete_rules_profile(obj)
        except ProfileInUse as exc:
            self.message_user(request, str(exc), level=messages.ERROR)

    def delete_queryset(self, request: Any, queryset: Any) -> None:  # type: ignore[override]
        for profile in queryset:
            self.delete_model(request, profile)


# ------------------------------------------------------------
# Points ledger
# ------------------------------------------------------------
@admin.register(PlayerGameRulePoints)
class PlayerGameRulePointsAdmin(admin.ModelAdmin):
    """Read-only ledger of awarded points.

    Manual awards are written in TEAM/CLUB pairs by the awards service, so
    single rows are never added or edited here.
    """

    list_display = ("player", "game", "rule", "point_type", "points_display", "is_manual", "profile")
    list_filter = ("point_type", "is_manual", "rule", "game__team")
    search_fields = ("player__first_name", "player__last_name", "rule__name", "notes")
    list_select_related = ("player", "game", "game__team", "rule", "profile")

    readonly_fields = ("player", "game", "rule", "profile", "point_type", "points", "is_manual", "notes")

    def has_add_permission(self, request: Any) -> bool:
        return False

    @admin.display(description="Body")
    def points_display(self, obj: PlayerGameRulePoints) -> str:
        color = "#080" if obj.points >= 0 else "#b00"
        return format_html('<span style="color:{};">{}</span>', color, obj.points)
