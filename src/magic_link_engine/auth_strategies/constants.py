# auth_strategies/constants.py

STRATEGY_EMAIL_MAGIC_LINK = "email_magic_link"

# Redis key prefixes
MAGIC_LINK_USED_PREFIX = "magic:used:"
AUTH_SESSION_PREFIX = "authsess:"
AUTH_CODE_PREFIX = "authcode:"

# Auth notes recorded on the authorization session when a link is issued
EMAIL_CODE_NOTE = "email_code"
EMAIL_CODE_EXPIRES_NOTE = "email_code_expires_at"

# Query parameters of the redemption URL
MAGIC_LINK_KEY_PARAM = "key"
MAGIC_LINK_CLIENT_PARAM = "client_id"

# Generic user-facing error code for every rejected link
MAGIC_LINK_ERROR_CODE = "magic_link_invalid"
