"""
Services layer for now.ink.
Client-side capture flow (wallet session, backend gateway, capture
orchestration) and the server-side mint executor.
"""
