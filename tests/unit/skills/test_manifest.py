from __future__ import annotations

from pathlib import Path

from skillsync.skills.manifest import (
    parse_front_matter,
    parse_skill_metadata,
    read_skill_metadata,
)


def test_front_matter_name_and_description() -> None:
    meta = parse_front_matter("---\nname: Hello\ndescription: Says hello\n---\n\n# Hello\n")
    assert meta.name == "Hello"
    assert meta.description == "Says hello"


def test_leading_bom_is_ignored() -> None:
    meta = parse_front_matter("\ufeff---\nname: Bom\n---\nbody")
    assert meta.name == "Bom"


def test_missing_front_matter_yields_empty_metadata() -> None:
    meta = parse_front_matter("# Just a heading\n\nNo metadata here.\n")
    assert meta.name is None
    assert meta.description is None


def test_invalid_yaml_yields_empty_metadata() -> None:
    meta = parse_front_matter("---\nname: [unclosed\n---\nbody")
    assert meta.name is None
    assert meta.description is None


def test_non_mapping_front_matter_yields_empty_metadata() -> None:
    meta = parse_front_matter("---\n- a\n- b\n---\nbody")
    assert meta.name is None


def test_non_string_values_are_coerced() -> None:
    meta = parse_front_matter("---\nname: 123\ndescription: true\n---\n")
    assert meta.name == "123"
    assert meta.description == "True"


def test_unreadable_manifest_yields_empty_metadata(tmp_path: Path) -> None:
    meta = parse_skill_metadata(tmp_path / "missing" / "SKILL.md")
    assert meta.name is None
    assert meta.description is None


def test_read_skill_metadata_falls_back_to_directory_name(tmp_path: Path, make_skill) -> None:
    bare = tmp_path / "bare"
    bare.mkdir()
    assert read_skill_metadata(bare, "bare") == ("bare", None)

    unnamed = tmp_path / "unnamed"
    make_skill(unnamed, description="only a description")
    assert read_skill_metadata(unnamed, "unnamed") == ("unnamed", "only a description")

    named = tmp_path / "named"
    make_skill(named, "Named Skill", "desc")
    assert read_skill_metadata(named, "named") == ("Named Skill", "desc")
