from __future__ import annotations

from speedscore.engine.naming import generate_unique_tournament_name, get_tournament_name_abbr


def test_abbreviation() -> None:
    assert get_tournament_name_abbr("Spring Speedgolf Open") == "SSO"
    assert get_tournament_name_abbr("  club   champs ") == "cc"


def test_base_name_uses_start_year() -> None:
    assert generate_unique_tournament_name("Spring Speedgolf Open", [], "2026-04-10") == "SSO26"
    assert generate_unique_tournament_name("Spring Speedgolf Open", None, "2031-01-01T08:00:00Z") == "SSO31"


def test_collision_spells_out_first_word() -> None:
    taken = ["SSO26", "SpSO26"]
    assert generate_unique_tournament_name("Spring Speedgolf Open", taken, "2026-04-10") == "SprSO26"


def test_accepts_tournament_documents() -> None:
    existing = [{"basicInfo": {"uniqueName": "SSO26"}}, {"basicInfo": {}}, None]
    assert generate_unique_tournament_name("Spring Speedgolf Open", existing, "2026-04-10") == "SpSO26"


def test_numeric_suffix_after_first_word_exhausted() -> None:
    taken = ["SSO26", "SpSO26", "SprSO26", "SpriSO26", "SprinSO26", "SpringSO26", "SSO261"]
    assert generate_unique_tournament_name("Spring Speedgolf Open", taken, "2026-04-10") == "SSO262"


def test_single_word_name() -> None:
    assert generate_unique_tournament_name("Classic", ["C26"], "2026-05-05") == "Cl26"


def test_time_suffix_when_everything_is_taken() -> None:
    taken = ["X26"] + [f"X26{i}" for i in range(1, 100)]
    name = generate_unique_tournament_name("X", taken, "2026-01-01")
    assert name.startswith("X26")
    assert len(name) == 6
    assert name not in taken


def test_blank_name() -> None:
    assert generate_unique_tournament_name("   ", ["SSO26"]) == ""
