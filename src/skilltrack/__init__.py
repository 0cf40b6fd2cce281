"""SkillTrack: role-based skill tracking for clinical and lab education."""

__version__ = "0.1.0"
