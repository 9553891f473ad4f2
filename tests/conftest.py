import os
import warnings

# Ignore warnings from media_offset
warnings.filterwarnings("ignore", category=DeprecationWarning, module="media_offset.*")

# Keep unit tests independent of any developer env.local
os.environ.update(
    {
        "AZURE_SUBSCRIPTION_ID": "00000000-0000-0000-0000-000000000000",
        "AZURE_RESOURCE_GROUP": "test-rg",
        "AZURE_MEDIA_ACCOUNT_NAME": "testmedia",
        "AZURE_AAD_TENANT_ID": "test-tenant",
        "AZURE_AAD_CLIENT_ID": "test-client",
        "AZURE_AAD_SECRET": "test-secret",
    }
)

# Import fake client fixtures so they are available to all tests
from tests.fixtures.fake_media_client import *  # noqa: E402, F403
