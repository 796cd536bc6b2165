"""KickOff AI: live football data, standings and predictions from Gemini."""

__version__ = "0.1.0"
