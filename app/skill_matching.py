"""
Skill name matching utilities with alias support and fuzzy matching.
Handles variations like "JS" → "JavaScript", "Node.js" → "Node JS",
"k8s" → "Kubernetes", and maps task types to the skills they call for.
"""
import logging
import re
from difflib import SequenceMatcher
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


# Skills that matter for each task type
TASK_TYPE_SKILLS: Dict[str, List[str]] = {
    "development": [
        "JavaScript", "React", "Node.js", "MongoDB", "Express",
        "TypeScript", "API", "Backend", "Frontend",
    ],
    "design": [
        "UI/UX Design", "Figma", "Adobe XD", "CSS", "HTML",
        "Design", "Photoshop", "Illustrator",
    ],
    "testing": [
        "Testing", "QA", "Jest", "Cypress", "Selenium",
        "Unit Testing", "Integration Testing",
    ],
    "documentation": [
        "Documentation", "Markdown", "Technical Writing", "UML", "Diagram",
    ],
    "bug-fix": [
        "Debugging", "Testing", "JavaScript", "React", "Node.js",
        "Backend", "Frontend",
    ],
    "feature": [
        "JavaScript", "React", "Node.js", "MongoDB", "Express",
        "Frontend", "Backend",
    ],
    "maintenance": [
        "DevOps", "CI/CD", "Docker", "Kubernetes", "AWS", "Azure", "Git",
    ],
    "DEVOPS": [
        "DevOps", "CI/CD", "Docker", "Kubernetes", "AWS", "Azure", "Git", "Linux",
    ],
    "JS": ["JavaScript", "TypeScript", "Node.js", "React", "Express"],
    "JAVA": ["Java", "Spring", "Hibernate", "JPA", "Maven", "JUnit"],
    "other": [],
}

# Alias dictionary for common variations
SKILL_ALIASES: Dict[str, List[str]] = {
    "JavaScript": ["js", "javascript", "ecmascript", "es6", "vanilla js"],
    "TypeScript": ["ts", "typescript"],
    "Node.js": ["node", "nodejs", "node js"],
    "React": ["reactjs", "react js", "react.js"],
    "MongoDB": ["mongo", "mongodb"],
    "Express": ["expressjs", "express js", "express.js"],
    "Kubernetes": ["k8s", "kube"],
    "CI/CD": ["cicd", "ci cd", "continuous integration", "continuous delivery"],
    "UI/UX Design": ["ui", "ux", "ui ux", "uiux", "ui design", "ux design"],
    "QA": ["quality assurance"],
    "Unit Testing": ["unit tests", "test unitaire"],
    "Integration Testing": ["integration tests", "test d integration"],
    "Technical Writing": ["tech writing"],
    "AWS": ["amazon web services"],
    "Azure": ["microsoft azure"],
}

# Reverse alias lookup
_ALIAS_TO_SKILL: Dict[str, str] = {}


def normalize_skill_name(name: str) -> str:
    """
    Normalize a skill name for comparison by:
    - Lowercasing
    - Turning punctuation into spaces ("Node.js" → "node js")
    - Normalizing whitespace

    Args:
        name: Raw skill name

    Returns:
        Normalized skill name
    """
    if not name:
        return ""

    normalized = name.lower().strip()
    normalized = re.sub(r"[.,;:\-_/\\'+]+", " ", normalized)
    normalized = re.sub(r"[^a-z0-9#\s]", "", normalized)
    normalized = re.sub(r"\s+", " ", normalized)

    return normalized.strip()


def _index_aliases() -> None:
    _ALIAS_TO_SKILL.clear()
    for skill, aliases in SKILL_ALIASES.items():
        _ALIAS_TO_SKILL[normalize_skill_name(skill)] = skill
        for alias in aliases:
            _ALIAS_TO_SKILL[normalize_skill_name(alias)] = skill


_index_aliases()


def canonical_skill_name(name: str) -> str:
    """
    Resolve an alias to its canonical skill name.
    Unknown names come back unchanged.
    """
    return _ALIAS_TO_SKILL.get(normalize_skill_name(name), name)


def calculate_similarity(name1: str, name2: str) -> float:
    """
    Calculate similarity between two skill names.

    Whole-word containment counts as a strong match ("React Native" holds
    "React"); character-level containment does not, so "Java" stays apart
    from "JavaScript".

    Args:
        name1: First skill name
        name2: Second skill name

    Returns:
        Similarity score between 0.0 and 1.0
    """
    n1 = normalize_skill_name(canonical_skill_name(name1))
    n2 = normalize_skill_name(canonical_skill_name(name2))

    if not n1 or not n2:
        return 0.0

    if n1 == n2:
        return 1.0

    parts1 = n1.split()
    parts2 = n2.split()
    if set(parts2) <= set(parts1) or set(parts1) <= set(parts2):
        return 0.9

    # Compact forms ("cicd" vs "ci cd")
    if n1.replace(" ", "") == n2.replace(" ", ""):
        return 0.95

    return SequenceMatcher(None, n1, n2).ratio()


def match_skill_name(
    name: str,
    candidates: Iterable[str],
    threshold: float = 0.8
) -> Optional[Tuple[str, float]]:
    """
    Match a skill name to the closest candidate.

    Matching strategies (in order):
    1. Alias resolution
    2. Exact normalized match
    3. Whole-word containment
    4. Fuzzy similarity match

    Args:
        name: Skill name to look up
        candidates: Skill names to match against
        threshold: Minimum similarity score to accept a match

    Returns:
        Tuple of (matched_candidate, similarity_score) or None if no match
    """
    if not name:
        return None

    best_match: Optional[str] = None
    best_score: float = 0.0

    for candidate in candidates:
        score = calculate_similarity(name, candidate)
        if score == 1.0:
            return (candidate, 1.0)
        if score > best_score:
            best_score = score
            best_match = candidate

    if best_match and best_score >= threshold:
        logger.debug(f"Skill match: '{name}' -> '{best_match}' (similarity: {best_score:.2f})")
        return (best_match, best_score)

    return None


def skills_for_task_type(task_type: Optional[str]) -> List[str]:
    """
    Get the skills a task type calls for.

    Args:
        task_type: Task type as stored on the task

    Returns:
        List of skill names, empty when the type has no specific skills
    """
    if not task_type:
        return []
    return TASK_TYPE_SKILLS.get(task_type, [])


def is_skill_relevant(skill_name: str, task_type: Optional[str], threshold: float = 0.8) -> bool:
    """
    Check whether a member's skill counts for a task type.
    """
    important = skills_for_task_type(task_type)
    if not important:
        return False
    return match_skill_name(skill_name, important, threshold) is not None
