# Log events & error codes
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
LINK_NOT_FOUND = 'LINK_NOT_FOUND'
LINK_DISABLED = 'LINK_DISABLED'
LINK_EXPIRED = 'LINK_EXPIRED'
REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
