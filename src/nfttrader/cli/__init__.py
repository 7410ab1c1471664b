"""
Command Line Interface Package

Command Structure:
- nfttrader: Main entry point with utility commands (version, config)
- nfttrader cache: Refresh, inspect and clear cached wallet holdings
- nfttrader list: Interactive listing wizard or direct-mode listing
- nfttrader session: Inspect and clear saved wizard sessions
"""
