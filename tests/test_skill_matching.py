from app.skill_matching import (
    calculate_similarity,
    canonical_skill_name,
    is_skill_relevant,
    match_skill_name,
    normalize_skill_name,
)


def test_normalize_turns_punctuation_into_spaces():
    assert normalize_skill_name("  Node.JS ") == "node js"
    assert normalize_skill_name("UI/UX Design") == "ui ux design"
    assert normalize_skill_name("C#") == "c#"


def test_aliases_resolve_to_canonical_names():
    assert canonical_skill_name("JS") == "JavaScript"
    assert canonical_skill_name("k8s") == "Kubernetes"
    assert canonical_skill_name("Rust") == "Rust"


def test_java_is_not_javascript():
    assert calculate_similarity("Java", "JavaScript") < 0.8
    assert match_skill_name("Java", ["JavaScript", "TypeScript"]) is None


def test_whole_word_containment_matches():
    assert match_skill_name("React Native", ["React", "Figma"]) == ("React", 0.9)


def test_relevance_follows_task_type():
    assert is_skill_relevant("JS", "development")
    assert is_skill_relevant("Spring", "JAVA")
    assert not is_skill_relevant("Figma", "development")
    assert not is_skill_relevant("JavaScript", "other")
    assert not is_skill_relevant("JavaScript", None)
