"""UI Blocks CLI — browse stored blocks and render component files locally."""

__version__ = "0.1.0"
