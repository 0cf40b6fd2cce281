"""Command-line interface for SkillTrack."""
