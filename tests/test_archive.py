"""ZIP reading and grouping into candidate skill folders."""

import pytest

from skillstore.errors import ValidationError
from skillstore.schemas.upload import ExtractedFile, SkillFolder
from skillstore.services.archive import extract_skill_folders, read_zip
from skillstore.utils.upload_validation import validate_archive_size, validate_skill_folder


def test_groups_files_by_top_level_directory(make_zip):
    data = make_zip(
        {
            "alpha/SKILL.md": "# Alpha",
            "alpha/scripts/run.py": "print(1)",
            "beta/SKILL.md": "# Beta",
            "README.md": "root files belong to no skill",
        }
    )
    folders = {f.name: f for f in extract_skill_folders(read_zip(data))}

    assert set(folders) == {"alpha", "beta"}
    assert [f.path for f in folders["alpha"].files] == ["SKILL.md", "scripts/run.py"]
    assert folders["alpha"].files[1].content == "print(1)"


def test_empty_directory_becomes_empty_candidate(make_zip):
    folders = extract_skill_folders(read_zip(make_zip({"skillA/SKILL.md": "x", "skillB/": b""})))
    by_name = {f.name: f for f in folders}
    assert by_name["skillB"].files == []


def test_binary_files_are_flagged_without_content(make_zip):
    data = make_zip({"alpha/SKILL.md": "# A", "alpha/logo.png": b"\x89PNG\x00\x00"})
    (folder,) = extract_skill_folders(read_zip(data))
    logo = next(f for f in folder.files if f.path == "logo.png")
    assert logo.is_binary is True
    assert logo.content == ""
    assert [f.path for f in folder.text_files] == ["SKILL.md"]


def test_macos_resource_forks_are_skipped(make_zip):
    data = make_zip({"alpha/SKILL.md": "# A", "__MACOSX/alpha/._SKILL.md": b"\x00\x05"})
    assert [f.name for f in extract_skill_folders(read_zip(data))] == ["alpha"]


def test_invalid_archive_is_a_validation_error():
    with pytest.raises(ValidationError, match="Invalid ZIP archive"):
        read_zip(b"definitely not a zip")


def test_archive_size_limit():
    limit = 10 * 1024 * 1024
    assert validate_archive_size(limit, limit).valid
    assert validate_archive_size(limit + 1, limit).errors == ["ZIP file exceeds maximum size of 10MB"]


def test_folder_requires_root_marker_file():
    nested = SkillFolder(name="x", files=[ExtractedFile(path="docs/SKILL.md", content="#")])
    assert validate_skill_folder(nested).errors == ["Skill folder must contain SKILL.md file"]

    lower = SkillFolder(name="x", files=[ExtractedFile(path="skill.md", content="#")])
    assert validate_skill_folder(lower).valid


def test_folder_marker_must_be_text():
    folder = SkillFolder(name="x", files=[ExtractedFile(path="SKILL.md", content="", is_binary=True)])
    assert not validate_skill_folder(folder).valid


def test_folder_limits_report_all_problems():
    files = [ExtractedFile(path=f"f{i}.md", content="") for i in range(51)]
    files.append(ExtractedFile(path="big.md", content="x" * (200 * 1024 + 1)))
    errors = validate_skill_folder(SkillFolder(name="x", files=files)).errors

    assert errors == [
        "Skill folder must contain SKILL.md file",
        "Skill contains more than 50 files",
        'File "big.md" exceeds maximum size of 200KB',
    ]


def test_binary_files_do_not_count_towards_limits():
    files = [ExtractedFile(path="SKILL.md", content="#")]
    files += [ExtractedFile(path=f"img{i}.png", content="", is_binary=True) for i in range(60)]
    assert validate_skill_folder(SkillFolder(name="x", files=files)).valid


def test_uncompressed_total_is_capped_before_reading(make_zip):
    data = make_zip({"alpha/SKILL.md": "# A", "alpha/notes.md": "n" * 4096})
    with pytest.raises(ValidationError, match="exceed maximum uncompressed size"):
        read_zip(data, max_uncompressed_bytes=1024)


def test_oversized_entry_is_not_decompressed(make_zip):
    big = "x" * (200 * 1024 + 10)
    entries = read_zip(make_zip({"alpha/SKILL.md": "# A", "alpha/big.txt": big}))
    big_entry = next(e for e in entries if e.path == "alpha/big.txt")
    assert big_entry.truncated is True
    assert big_entry.size == len(big)
    assert len(big_entry.content) == 8192

    (folder,) = extract_skill_folders(entries)
    staged = next(f for f in folder.files if f.path == "big.txt")
    assert staged.content == ""
    assert staged.is_binary is False
    assert validate_skill_folder(folder).errors == ['File "big.txt" exceeds maximum size of 200KB']
