# shared module
#
# Configuration and filesystem helpers used across the session stages.
