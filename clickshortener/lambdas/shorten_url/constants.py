# Log events & error codes
MISSING_USER_ID = 'MISSING_USER_ID'
INVALID_JSON = 'INVALID_JSON'
MISSING_TARGET_URL = 'MISSING_TARGET_URL'
LINK_CREATED = 'LINK_CREATED'
