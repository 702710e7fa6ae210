"""Well-known locations for skills, locally and on GitHub."""

from ..core.config_schema import SkillRepository

SKILL_FILENAME = "SKILL.md"
METADATA_FILENAME = "metadata.json"

# Workspace-relative directories where agents and editors keep skills.
DEFAULT_SCAN_PATHS = [
    ".cursor/rules",
    ".cursor/skills",
    ".clinerules",
    ".cline_skills",
    ".claude/skills",
    "skills",
    ".github/copilot-instructions.md",
    ".github/instructions",
    ".continue/rules",
    ".continue/skills",
    ".amazonq/cli-agents",
    ".kiro",
    ".agent/skills",
    ".agents/skills",
    "_agent/skills",
    "_agents/skills",
]

DEFAULT_TARGET_IMPORT_PATH = ".agent/skills"
DEFAULT_GLOBAL_SKILLS_PATH = "~/open-skills"

DEFAULT_SKILL_REPOSITORIES = [
    SkillRepository(owner="x7dl8p", repo="OpenSkill-Marketplace", path="skills"),
    SkillRepository(owner="anthropics", repo="skills", path="skills"),
    SkillRepository(owner="vercel-labs", repo="agent-skills", path="skills"),
    SkillRepository(owner="openai", repo="skills", path="skills/.curated"),
    SkillRepository(owner="pytorch", repo="pytorch", path=".claude/skills"),
    SkillRepository(owner="microsoftdocs", repo="mcp", path="skills"),
]
