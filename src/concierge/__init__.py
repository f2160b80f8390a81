"""
SecureBank concierge: chat routing across Dialogflow, Lex and Kendra.
"""

__version__ = "1.0.0"
