"""Conversational ordering agent: chat sessions, order extraction, and status notifications."""
