#
# PURPOSE:
# Foundational pieces every other package depends on.
#
# WHAT'S IN THIS MODULE:
# - config.py: worker configuration (tool ceilings, paths, logging)
# - exceptions.py: error taxonomy shared by workers and the supervisor
# - context.py: request-scoped logging
#
