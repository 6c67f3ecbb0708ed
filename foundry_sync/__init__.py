"""Export a Markdown vault into a Foundry VTT world through the REST relay."""

__version__ = "0.1.0"
