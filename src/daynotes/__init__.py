"""DayNotes: date-organized personal notes with AI note ideas."""

__version__ = "0.1.0"
