# Log events & error codes
MISSING_USER_ID = 'MISSING_USER_ID'
MISSING_LINK_ID = 'MISSING_LINK_ID'
INVALID_GRANULARITY = 'INVALID_GRANULARITY'
INVALID_TIME_RANGE = 'INVALID_TIME_RANGE'
LINK_NOT_FOUND = 'LINK_NOT_FOUND'
SUMMARY_SUCCESS = 'SUMMARY_SUCCESS'
