# Log events & error codes
MISSING_USER_ID = 'MISSING_USER_ID'
MISSING_LINK_ID = 'MISSING_LINK_ID'
INVALID_JSON = 'INVALID_JSON'
METHOD_NOT_ALLOWED = 'METHOD_NOT_ALLOWED'
LINK_NOT_FOUND = 'LINK_NOT_FOUND'
LINKS_LISTED = 'LINKS_LISTED'
LINK_FETCHED = 'LINK_FETCHED'
LINK_UPDATED = 'LINK_UPDATED'
LINK_DELETED = 'LINK_DELETED'
