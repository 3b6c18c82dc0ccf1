import logging

import google.auth
from google.auth.transport.requests import Request

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class AccessToken:
    """Short-lived Google OAuth token from Application Default Credentials.

    Vertex AI's OpenAI-compatible endpoint takes the access token as the API
    key. Tokens expire after about an hour, so ``current()`` refreshes
    whenever the cached one is missing or expired.
    """

    def __init__(self, credentials=None):
        if credentials is None:
            credentials, _ = google.auth.default(scopes=SCOPES)
        self.credentials = credentials

    def current(self) -> str:
        if not self.credentials.valid:
            logger.debug("Refreshing Google access token")
            self.credentials.refresh(Request())
        return self.credentials.token
