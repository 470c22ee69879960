# Review Router - Tier-Based Review Form Distribution
# ===================================================
# Sends customers to review forms in round-robin order per tier and drafts
# review text with Gemini. Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI routes (review_router.web)
# - Application:    Distribution, config save/load, review generation
# - Domain:         Configuration model and merge rules (no external dependencies)
# - Infrastructure: Blob stores, Gemini, Google Apps Script, settings
#
# Infrastructure components can be swapped (e.g. SQLite store for a remote
# blob store) without touching the domain or application layers.
