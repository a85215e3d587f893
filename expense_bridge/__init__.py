"""
Matrix Expense Bridge - Source Package

A chat bot that watches a single Matrix room and turns `!add` commands
into withdrawal transactions on a Firefly III ledger.

PRINCIPLES:
1. Attempted commands always get a reply (success or failure)
2. Ordinary chat never gets a reply
3. One bad message never takes the bot down
4. No local state survives a message
"""

__version__ = "1.0.0"
__author__ = "Matrix Expense Bridge Team"
