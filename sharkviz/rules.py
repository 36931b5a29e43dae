"""
Keyword rule tables for injury and species text.

Rule order is significant and fixed. Keywords are matched as unanchored,
lower-case substrings, so a short keyword can claim text meant for a later
rule (e.g. "white" catches "oceanic whitetip"); tables are curated with that in
mind rather than re-ordered at runtime.
"""

from __future__ import annotations

from .models import CategoryRule

UNKNOWN_REGION = "unknown"
UNKNOWN_SPECIES = "Unknown"

BODY_REGION_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        "head",
        ("head", "face", "neck", "skull", "scalp", "ear", "nose", "jaw", "chin", "cheek", "forehead", "temple"),
        "Head & Neck",
    ),
    CategoryRule(
        "torso",
        ("chest", "abdomen", "stomach", "torso", "back", "ribs", "side", "hip", "pelvis", "shoulder", "body"),
        "Torso",
    ),
    CategoryRule("upperArm", ("upper arm", "bicep", "tricep"), "Upper Arm"),
    CategoryRule(
        "lowerArm",
        ("forearm", "wrist", "hand", "finger", "thumb", "palm", "knuckle", "arm"),
        "Arm & Hand",
    ),
    CategoryRule("upperLeg", ("thigh", "groin", "buttock", "upper leg", "quadricep"), "Upper Leg"),
    CategoryRule("lowerLeg", ("knee", "calf", "shin", "lower leg", "leg"), "Lower Leg"),
    CategoryRule("foot", ("foot", "feet", "ankle", "toe", "heel", "arch"), "Foot & Ankle"),
)

REGION_NAMES = {rule.category_id: rule.name for rule in BODY_REGION_RULES}

# Text that describes the record's provenance rather than a species.
SPECIES_REJECT_PHRASES = ("shark involvement", "prior to death")

SPECIES_UNCERTAIN_KEYWORDS = (
    "unknown",
    "undetermined",
    "not stated",
    "not staed",
    "questionable",
    "unconfirmed",
    "unidentified",
    "not identified",
    "no id",
    "not confirmed",
    "invalid",
)

SPECIES_RULES: tuple[CategoryRule, ...] = tuple(
    CategoryRule(name, keywords, name)
    for keywords, name in [
        (("white", "great white", "white pointer", "carcharodon"), "White Shark"),
        (("tiger",), "Tiger Shark"),
        (("bull", "zambezi"), "Bull Shark"),
        (("blue",), "Blue Shark"),
        (("mako", "shortfin mako", "longfin mako"), "Mako Shark"),
        (("hammerhead", "hammer head"), "Hammerhead Shark"),
        (("blacktip", "black tip", "black-tip"), "Blacktip Shark"),
        (("nurse",), "Nurse Shark"),
        (("lemon",), "Lemon Shark"),
        (("reef", "grey reef", "gray reef", "whitetip reef", "blacktip reef"), "Reef Shark"),
        (("bronze", "bronze whaler", "copper"), "Bronze Whaler Shark"),
        (("spinner",), "Spinner Shark"),
        (("sandbar", "sand bar"), "Sandbar Shark"),
        (("sand tiger", "grey nurse", "gray nurse", "ragged tooth"), "Sand Tiger Shark"),
        (("oceanic whitetip", "oceanic white tip"), "Oceanic Whitetip Shark"),
        (("sevengill", "seven gill", "7 gill"), "Sevengill Shark"),
        (("sixgill", "six gill", "6 gill"), "Sixgill Shark"),
        (("thresher",), "Thresher Shark"),
        (("wobbegong", "carpet shark"), "Wobbegong Shark"),
        (("porbeagle",), "Porbeagle Shark"),
        (("dusky",), "Dusky Shark"),
        (("silky",), "Silky Shark"),
        (("basking",), "Basking Shark"),
        (("whale shark",), "Whale Shark"),
        (("goblin",), "Goblin Shark"),
        (("megamouth", "mega mouth"), "Megamouth Shark"),
    ]
)
