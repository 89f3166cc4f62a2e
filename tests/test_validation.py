"""Constraint checks on skill inputs."""

from skillstore.schemas.skill import FileChange, FileInput, SkillCreate, SkillUpdate
from skillstore.utils.validation import (
    FILE_CONTENT_MAX,
    find_duplicate_paths,
    resulting_paths,
    validate_create_skill,
    validate_name,
    validate_update_skill,
)


def _create(**overrides) -> SkillCreate:
    data = {"name": "demo", "files": [{"path": "SKILL.md", "content": "# Demo"}]}
    data.update(overrides)
    return SkillCreate.model_validate(data)


def test_valid_create_has_no_errors():
    result = validate_create_skill(_create())
    assert result.valid
    assert result.errors == []


def test_name_rules():
    assert not validate_name("").valid
    assert not validate_name("   ").valid
    assert validate_name("x" * 100).valid
    assert validate_name("x" * 101).errors == ["Skill name exceeds 100 characters"]


def test_create_collects_every_violation():
    data = _create(
        name="",
        description="d" * 1025,
        changelog="c" * 2001,
        files=[
            {"path": "a" * 256, "content": "x"},
            {"path": "big.txt", "content": "x" * (FILE_CONTENT_MAX + 1)},
        ],
    )
    errors = validate_create_skill(data).errors
    assert "Skill name is required" in errors
    assert "Description exceeds 1024 characters" in errors
    assert "Changelog exceeds 2000 characters" in errors
    assert any("File path exceeds 255 characters" in e for e in errors)
    assert 'File "big.txt": File content exceeds 200KB' in errors


def test_content_limit_counts_utf8_bytes():
    # 'é' is two bytes in UTF-8
    at_limit = "é" * (FILE_CONTENT_MAX // 2)
    over_limit = at_limit + "é"
    assert validate_create_skill(_create(files=[{"path": "a.md", "content": at_limit}])).valid
    assert not validate_create_skill(_create(files=[{"path": "a.md", "content": over_limit}])).valid


def test_create_requires_files_and_caps_count():
    assert validate_create_skill(_create(files=[])).errors == ["At least one file is required"]

    files = [{"path": f"f{i}.md", "content": ""} for i in range(51)]
    assert "Number of files (51) exceeds 50" in validate_create_skill(_create(files=files)).errors


def test_create_rejects_duplicate_paths():
    files = [{"path": "a.md", "content": "1"}, {"path": "a.md", "content": "2"}]
    assert "Duplicate file paths are not allowed" in validate_create_skill(_create(files=files)).errors


def test_find_duplicate_paths_reports_each_once():
    assert find_duplicate_paths(["a", "b", "a", "a", "c", "b"]) == ["a", "b"]
    assert find_duplicate_paths([]) == []


def test_update_requires_content_for_add_and_update():
    data = SkillUpdate(
        skill_id="demo",
        file_changes=[
            FileChange(type="add", path="new.md"),
            FileChange(type="update", path="old.md"),
            FileChange(type="delete", path="gone.md"),
        ],
    )
    errors = validate_update_skill(data, ["old.md", "gone.md"]).errors
    assert errors == [
        'File "new.md": File content is required for add operation',
        'File "old.md": File content is required for update operation',
    ]


def test_update_rejects_duplicate_change_paths():
    data = SkillUpdate(
        skill_id="demo",
        file_changes=[
            FileChange(type="add", path="x.md", content="1"),
            FileChange(type="delete", path="x.md"),
        ],
    )
    assert "Duplicate file change path: x.md" in validate_update_skill(data).errors


def test_update_file_count_uses_resulting_set():
    current = [f"f{i}.md" for i in range(50)]

    # Overwriting an existing path does not grow the set
    overwrite = SkillUpdate(skill_id="s", file_changes=[FileChange(type="add", path="f0.md", content="")])
    assert validate_update_skill(overwrite, current).valid

    grow = SkillUpdate(skill_id="s", file_changes=[FileChange(type="add", path="f50.md", content="")])
    assert "Number of files (51) exceeds 50" in validate_update_skill(grow, current).errors

    swap = SkillUpdate(
        skill_id="s",
        file_changes=[
            FileChange(type="delete", path="f0.md"),
            FileChange(type="add", path="f50.md", content=""),
        ],
    )
    assert validate_update_skill(swap, current).valid


def test_resulting_paths():
    changes = [
        FileChange(type="add", path="x", content=""),
        FileChange(type="delete", path="y"),
        FileChange(type="update", path="z", content=""),
    ]
    assert resulting_paths({"y", "w"}, changes) == {"w", "x", "z"}


def test_update_without_changes_only_checks_metadata():
    assert validate_update_skill(SkillUpdate(skill_id="demo")).valid
    assert validate_update_skill(SkillUpdate(skill_id="")).errors == ["Skill ID is required"]


def test_file_input_defaults():
    file = FileInput(path="run.py", content="print(1)")
    assert file.is_executable is False
    assert file.script_language is None
