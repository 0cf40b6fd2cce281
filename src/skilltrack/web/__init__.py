"""Web API for SkillTrack."""
