from __future__ import annotations

import pytest

from sharkviz.classify import (
    classify,
    classify_body_regions,
    classify_species,
    clean_residue,
    residue_label,
    strip_measurements,
    strip_parentheticals,
    strip_qualifiers,
    title_case,
)
from sharkviz.rules import BODY_REGION_RULES, SPECIES_RULES


def test_species_examples() -> None:
    assert classify_species("3.5 m great white shark") == "White Shark"
    assert classify_species("shark involvement prior to death unconfirmed") == "Unknown"
    assert classify_species("Tiger shark, 3m") == "Tiger Shark"
    assert classify_species("  BULL SHARK  ") == "Bull Shark"


@pytest.mark.parametrize("raw", ["", "   ", None, 12.5, "Questionable", "bull shark unconfirmed", "Shark involvement not confirmed"])
def test_species_fallback_to_unknown(raw) -> None:
    assert classify_species(raw).lower() == "unknown"


@pytest.mark.parametrize("raw", ["Shark", "small shark", "shark 2m", "2 m shark", "12' shark"])
def test_bare_or_size_only_mentions_are_unknown(raw: str) -> None:
    assert classify_species(raw) == "Unknown"


def test_unmatched_text_becomes_cleaned_label() -> None:
    assert classify_species("2 m grey shark") == "Grey Shark"
    assert classify_species("Possibly a dogfish (per witness)") == "A Dogfish Shark"


def test_rule_order_wins_on_overlapping_keywords() -> None:
    # "tiger" is declared before "sand tiger"; "white" before "oceanic whitetip"
    assert classify_species("sand tiger shark") == "Tiger Shark"
    assert classify_species("oceanic whitetip") == "White Shark"


def test_cleanup_steps_individually() -> None:
    assert strip_measurements("3.5 m white").strip() == "white"
    assert strip_measurements("12 ft dusky").strip() == "dusky"
    assert strip_qualifiers("suspected bull").strip() == "bull"
    assert strip_qualifiers("forest") == "forest"
    assert strip_parentheticals("a (b) c") == "a  c"
    assert title_case("grey reef") == "Grey Reef"
    assert clean_residue("1.5 m copper sharks, possibly") == "copper"


def test_residue_label_rejects_short_or_noise_residue() -> None:
    assert residue_label("ab") == "Unknown"
    assert residue_label("12' - 14'") == "Unknown"
    assert residue_label("spotted wobbly") == "Spotted Wobbly Shark"


def test_body_region_multi_label() -> None:
    labels = classify_body_regions("Laceration to forearm and chest")
    assert {"lowerArm", "torso"} <= set(labels)
    assert classify_body_regions("Bitten on left calf") == ("lowerLeg",)


def test_body_region_upper_arm_also_matches_arm_keyword() -> None:
    assert classify_body_regions("upper arm bitten") == ("upperArm", "lowerArm")


@pytest.mark.parametrize("raw", ["", None, "no injury", "FATAL"])
def test_body_region_unknown(raw) -> None:
    assert classify_body_regions(raw) == ("unknown",)


def test_classification_is_total_and_deterministic() -> None:
    samples = ["x", "Foot bitten", "great white", "unidentified species", "4' to 5' blacktip", "Leg & hand"]
    for s in samples:
        first_species = classify_species(s)
        first_regions = classify_body_regions(s)
        assert first_species
        assert len(first_regions) >= 1
        for _ in range(3):
            assert classify_species(s) == first_species
            assert classify_body_regions(s) == first_regions


def test_generic_classify_modes() -> None:
    assert classify("hammer head", SPECIES_RULES, "single") == "Hammerhead Shark"
    assert classify("toe", BODY_REGION_RULES, "multi") == ("foot",)
    with pytest.raises(ValueError):
        classify("toe", BODY_REGION_RULES, "many")
