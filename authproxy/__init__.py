"""
Auth proxy for the research web app and browser extension.

A small FastAPI service that keeps user accounts as HighLevel CRM contacts:
login, signup, token checks, saved research and subscription tiers are all
translated into calls against the HighLevel contacts API.
"""
