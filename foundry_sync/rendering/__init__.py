"""Local vault access and note rendering."""

from .vault import LocalVault
from .renderer import Renderer, PandocRenderer

__all__ = ['LocalVault', 'Renderer', 'PandocRenderer']
