"""
Test Suite for NFT Trader

Test Structure:
- unit/: Unit tests mirroring src/ package structure

Test Data:
All wallets, contracts and prices are synthetic.
"""
