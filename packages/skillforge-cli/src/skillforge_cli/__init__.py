"""SkillForge CLI."""
