"""
Custom token minting and the signers behind it.
"""
