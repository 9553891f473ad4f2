"""Pytest configuration for integration tests.

Integration tests talk to a real Media Services account and require actual
service principal credentials to run.
"""

import warnings

# Ignore warnings from media_offset
warnings.filterwarnings("ignore", category=DeprecationWarning, module="media_offset.*")
