"""Import Todoist inbox tasks into personal knowledge management notes."""

__version__ = "0.1.0"
