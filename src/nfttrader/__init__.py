"""
NFT Trader - Marketplace Trading Assistant

Command-line assistant for listing NFTs on marketplaces, built around a
resumable interactive wizard.

Domain Packages:
- core: Flow state machine, flow controller, session store, configuration
- listing: Pricing, validators, holdings cache, wizard step handlers
- opensea: OpenSea price lookups
- cli: Command-line interface (nfttrader)

Example Usage:
    from nfttrader.core.flow import FlowState, FlowStateManager

    manager = FlowStateManager()
    manager.transition(FlowState.SELECT_NFT, {"collectionSlug": "cool-cats"})
"""

__version__ = "0.1.0"
__author__ = "NFT Trader Developers"

from .core.config import Environment, get_config
from .core.flow import FlowState, FlowStateManager

__all__ = [
    # Flow state machine
    "FlowState",
    "FlowStateManager",

    # Configuration
    "get_config",
    "Environment",
]
