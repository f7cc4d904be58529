"""SkillSync command line interface."""
