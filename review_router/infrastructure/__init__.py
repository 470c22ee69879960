# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - persistence/: Blob stores (SQLite, HTTP) and the router config repository
# - llm/: Gemini review text generation
# - sampling/: Google Apps Script survey data
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
