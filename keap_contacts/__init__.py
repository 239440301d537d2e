"""
keap_contacts - Contact management for the Keap CRM

Lists, searches, creates, edits and deletes Keap contacts and manages the
notes attached to them.
"""

__version__ = "0.1.0"
